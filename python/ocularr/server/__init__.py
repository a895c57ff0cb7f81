"""Ocularr server side: configuration, Cycle Store and services."""
