"""Typed error hierarchy for the teamboard domain.

Every failure the core can report is one of these classes. Value-object
parsers and aggregate factories raise ValidationError subclasses, repository
adapters raise RepositoryError subclasses, and use cases re-wrap both in
their own UseCaseError subclass before handing them to an adapter.
"""


class TeamboardError(Exception):
    """Base class for all expected teamboard failures."""


# ============================================================================
# VALIDATION ERRORS
# ============================================================================


class ValidationError(TeamboardError):
    """Input violated a format, range, enum, uniqueness, or count rule."""


class _InvalidValueError(ValidationError):
    """Validation error that embeds the offending value in its message."""

    field_name = "value"

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Invalid {self.field_name}: {value}")


class InvalidIdError(_InvalidValueError):
    field_name = "id"


class InvalidNameError(_InvalidValueError):
    field_name = "name"


class InvalidTeamNameError(_InvalidValueError):
    field_name = "teamName"


class InvalidEmailError(_InvalidValueError):
    field_name = "email"


class InvalidTitleError(_InvalidValueError):
    field_name = "title"


class InvalidBodyError(_InvalidValueError):
    field_name = "body"


class InvalidIsDoneError(_InvalidValueError):
    field_name = "isDone"


class InvalidEnrollmentStatusError(_InvalidValueError):
    field_name = "enrollmentStatus"


class InvalidProgressStatusError(_InvalidValueError):
    field_name = "progressStatus"


class TeamError(ValidationError):
    """A team-level invariant was violated."""

    def __init__(self, message: str):
        super().__init__(f"Invalid team: {message}")


class TeamValidationError(TeamError):
    """Participant count or email uniqueness rule failed."""


# ============================================================================
# REPOSITORY ERRORS
# ============================================================================


class RepositoryError(TeamboardError):
    """A storage adapter failed; carries the original message."""


class TeamRepositoryError(RepositoryError):
    pass


class TeamRepositoryListError(TeamRepositoryError):
    pass


class TeamRepositoryFindByIdError(TeamRepositoryError):
    pass


class TeamRepositoryCreateError(TeamRepositoryError):
    pass


class TeamRepositoryUpdateError(TeamRepositoryError):
    pass


class TeamRepositoryDeleteError(TeamRepositoryError):
    pass


class TeamNotFoundError(
    TeamRepositoryFindByIdError, TeamRepositoryUpdateError, TeamRepositoryDeleteError
):
    """No team row matched the requested id."""

    def __init__(self, message: str = "Team not found"):
        super().__init__(message)


class TaskRepositoryError(RepositoryError):
    pass


class TaskRepositorySaveError(TaskRepositoryError):
    pass


class TaskRepositoryFindByIdError(TaskRepositoryError):
    pass


class TaskRepositoryFindManyByError(TaskRepositoryError):
    pass


class ParticipantRepositoryError(RepositoryError):
    pass


class ParticipantRepositorySaveError(ParticipantRepositoryError):
    pass


class ParticipantRepositoryFindManyByError(ParticipantRepositoryError):
    pass


class ParticipantRepositoryUpdateError(ParticipantRepositoryError):
    pass


class ParticipantNotFoundError(ParticipantRepositoryUpdateError):
    def __init__(self, message: str = "Participant not found"):
        super().__init__(message)


class AssignmentRepositoryError(RepositoryError):
    pass


class AssignmentRepositorySaveError(AssignmentRepositoryError):
    pass


class AssignmentRepositoryFindManyByError(AssignmentRepositoryError):
    pass


class AssignmentRepositoryUpdateError(AssignmentRepositoryError):
    pass


class AssignmentNotFoundError(AssignmentRepositoryUpdateError):
    def __init__(self, message: str = "Assignment not found"):
        super().__init__(message)


# ============================================================================
# USE CASE ERRORS
# ============================================================================


class UseCaseError(TeamboardError):
    """Use-case-scoped wrapper around a domain or repository failure.

    The message is prefixed with the concrete class name so callers can tell
    which operation failed, e.g. ``"CreateTeamUseCaseError: create failed"``.
    """

    def __init__(self, message: str):
        self.original_message = message
        super().__init__(f"{type(self).__name__}: {message}")


class NotFoundUseCaseError(UseCaseError):
    """Mixin base for use case errors that mean "no such entity"."""
