"""Participant use cases: enrollment changes and lookups."""

import logging

from .errors import (
    NotFoundUseCaseError,
    ParticipantNotFoundError,
    TeamboardError,
    UseCaseError,
)
from .participant import ParticipantRecord
from .ports import ParticipantRepositoryPort
from .value_objects import create_email, create_enrollment_status, parse_id

logger = logging.getLogger(__name__)


class UpdateParticipantEnrollmentUseCaseError(UseCaseError):
    pass


class UpdateParticipantEnrollmentUseCaseNotFoundError(
    UpdateParticipantEnrollmentUseCaseError, NotFoundUseCaseError
):
    pass


class FindParticipantsUseCaseError(UseCaseError):
    pass


class UpdateParticipantEnrollmentUseCase:
    """Change a participant's enrollment status (在籍中, 休会中, 退会済)."""

    def __init__(self, participant_repository: ParticipantRepositoryPort):
        self.participant_repository = participant_repository

    async def execute(
        self, participant_id: str, enrollment_status: str
    ) -> ParticipantRecord:
        try:
            valid_id = parse_id(participant_id)
            valid_status = create_enrollment_status(enrollment_status)
            updated = await self.participant_repository.update(
                valid_id, enrollment_status=valid_status.value
            )
        except ParticipantNotFoundError as e:
            raise UpdateParticipantEnrollmentUseCaseNotFoundError(str(e)) from e
        except TeamboardError as e:
            raise UpdateParticipantEnrollmentUseCaseError(str(e)) from e

        logger.info(
            f"Participant {updated.id} is now {updated.enrollment_status.value}",
            extra={
                "participant_id": str(updated.id),
                "enrollment_status": updated.enrollment_status.value,
            },
        )
        return updated.to_record()


class FindParticipantsUseCase:
    def __init__(self, participant_repository: ParticipantRepositoryPort):
        self.participant_repository = participant_repository

    async def execute(
        self,
        team_id: str | None = None,
        email: str | None = None,
        enrollment_status: str | None = None,
    ) -> list[ParticipantRecord]:
        """List participants matching every given criterion.

        Raises:
            FindParticipantsUseCaseError: For an invalid criterion or a
                storage failure.
        """
        try:
            participants = await self.participant_repository.find_many_by(
                team_id=parse_id(team_id) if team_id is not None else None,
                email=create_email(email) if email is not None else None,
                enrollment_status=(
                    create_enrollment_status(enrollment_status).value
                    if enrollment_status is not None
                    else None
                ),
            )
        except TeamboardError as e:
            raise FindParticipantsUseCaseError(str(e)) from e

        return [participant.to_record() for participant in participants]
