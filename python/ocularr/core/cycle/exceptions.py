"""Typed failures raised by the cycle engine.

Four families, each with a stable ``code`` the calling layer can map to a
response:

- ``ValidationError``: malformed or out-of-range input, never retried.
- ``PreconditionFailed``: a phase or business rule does not hold; surfaced
  verbatim, never retried.
- ``ConcurrencyConflict``: optimistic lock or uniqueness race; the whole
  operation may be retried once.
- ``StorageError``: the store failed; fatal for the operation.
"""

from typing import Optional


class CycleError(Exception):
    """Base class for every cycle engine failure."""

    code = "cycle_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


# Validation -----------------------------------------------------------------


class ValidationError(CycleError):
    code = "validation_error"


class InvalidDirection(ValidationError):
    code = "invalid_direction"

    def __init__(self, direction: object):
        super().__init__(f'Invalid action {direction!r}. Use "next" or "previous"')


class CycleNotFound(ValidationError):
    code = "cycle_not_found"

    def __init__(self, cycle_id: int):
        super().__init__(f"Cycle {cycle_id} not found")
        self.cycle_id = cycle_id


class NominationNotFound(ValidationError):
    code = "nomination_not_found"

    def __init__(self, nomination_id: int):
        super().__init__(f"Movie nomination {nomination_id} not found in this cycle")
        self.nomination_id = nomination_id


class UnknownNomination(ValidationError):
    code = "unknown_nomination"

    def __init__(self, nomination_id: object):
        super().__init__(f"Invalid nomination ID: {nomination_id}")
        self.nomination_id = nomination_id


class RepeatedNomination(ValidationError):
    code = "repeated_nomination"

    def __init__(self, nomination_id: int, kind: str):
        super().__init__(f"Nomination {nomination_id} appears more than once in {kind}")
        self.nomination_id = nomination_id


class RankPositionOutOfRange(ValidationError):
    code = "rank_position_out_of_range"

    def __init__(self, position: int, count: int):
        super().__init__(
            f"Rank position {position} is outside 1..{count} for {count} ranked movies"
        )
        self.position = position


# Preconditions --------------------------------------------------------------


class PreconditionFailed(CycleError):
    code = "precondition_failed"


class DirectorRoleRequired(PreconditionFailed):
    code = "director_role_required"

    def __init__(self, user_id: int):
        super().__init__(f"User {user_id} needs the director or producer role")


class NotClubMember(PreconditionFailed):
    code = "not_club_member"

    def __init__(self, user_id: int):
        super().__init__(f"User {user_id} is not an active member of this club")
        self.user_id = user_id


class AlreadyActive(PreconditionFailed):
    code = "already_active"

    def __init__(self, club_id: int, cycle_id: Optional[int] = None):
        super().__init__("There is already an active cycle for this club")
        self.club_id = club_id
        self.cycle_id = cycle_id


class NoThemesAvailable(PreconditionFailed):
    code = "no_themes_available"

    def __init__(self, club_id: int):
        super().__init__(
            "No unused themes available. Please add more themes to the pool."
        )
        self.club_id = club_id


class IncompleteNominations(PreconditionFailed):
    code = "incomplete_nominations"

    def __init__(self, nominated: int, members: int):
        super().__init__(
            "Cannot progress to watching phase. Not all members have nominated "
            f"movies ({nominated} of {members})."
        )
        self.nominated = nominated
        self.members = members


class WrongPhase(PreconditionFailed):
    code = "wrong_phase"

    def __init__(self, expected: str, actual: str):
        super().__init__(f"Cycle is not in {expected} phase (currently {actual})")
        self.expected = expected
        self.actual = actual


class CycleCompleted(PreconditionFailed):
    code = "cycle_completed"

    def __init__(self, cycle_id: int):
        super().__init__(f"Cycle {cycle_id} is completed and can no longer change")


class DuplicateNomination(PreconditionFailed):
    code = "duplicate_nomination"

    def __init__(self):
        super().__init__("You have already nominated a movie")


class MovieAlreadyTaken(PreconditionFailed):
    code = "movie_already_taken"

    def __init__(self, nominator_name: str):
        super().__init__(f"This movie has already been nominated by {nominator_name}")
        self.nominator_name = nominator_name


class AlreadySubmitted(PreconditionFailed):
    code = "already_submitted"

    def __init__(self):
        super().__init__("You have already submitted rankings for this cycle")


class ResultsAlreadyComputed(PreconditionFailed):
    code = "results_already_computed"

    def __init__(self, cycle_id: int):
        super().__init__(
            f"Results for cycle {cycle_id} are final; rankings can no longer change"
        )


class CannotRankOwnNomination(PreconditionFailed):
    code = "cannot_rank_own_nomination"

    def __init__(self):
        super().__init__("Cannot rank your own nomination")


class DuplicateRankPosition(PreconditionFailed):
    code = "duplicate_rank_position"

    def __init__(self, position: int):
        super().__init__(f"Duplicate rank position: {position}")
        self.position = position


class CannotUpdateOwnProgress(PreconditionFailed):
    code = "cannot_update_own_progress"

    def __init__(self):
        super().__init__("Cannot update watch progress for your own nomination")


class ThemeAlreadyExists(PreconditionFailed):
    code = "theme_already_exists"

    def __init__(self, theme_text: str):
        super().__init__(f"The theme '{theme_text}' already exists in the club")


# Infrastructure -------------------------------------------------------------


class ConcurrencyConflict(CycleError):
    code = "concurrency_conflict"


class StorageError(CycleError):
    code = "storage_error"
