"""
Ocularr Server - Declarative Base

All models inherit from this base so metadata.create_all() sees every table.
"""

from sqlalchemy.orm import declarative_base

Base = declarative_base()
