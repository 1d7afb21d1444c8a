"""Participant entity: a validated bundle of id, name, email and status."""

from dataclasses import dataclass
from typing import TypedDict

from .value_objects import (
    Email,
    EnrollmentStatus,
    Id,
    Name,
    create_email,
    create_enrollment_status,
    create_id,
    create_name,
    parse_id,
)


class ParticipantRecord(TypedDict):
    """Unbranded participant fields as stored and returned to callers."""

    id: str
    name: str
    email: str
    enrollment_status: str


@dataclass(frozen=True)
class Participant:
    """A team member.

    Build through ``create`` (new identity) or ``reconstruct`` (identity read
    back from storage). Both run the same validation in the same order and
    stop at the first failing field.
    """

    id: Id
    name: Name
    email: Email
    enrollment_status: EnrollmentStatus

    @classmethod
    def create(
        cls, name: str, email: str, enrollment_status: str
    ) -> "Participant":
        """Mint a new participant.

        Raises:
            InvalidNameError, InvalidEmailError, InvalidEnrollmentStatusError:
                for the first field that fails, in that order.
        """
        return cls._build(create_id(), name, email, enrollment_status)

    @classmethod
    def reconstruct(
        cls, id: str, name: str, email: str, enrollment_status: str
    ) -> "Participant":
        """Rehydrate a participant with an existing id.

        Raises:
            InvalidIdError: If the supplied id is not a ULID.
            InvalidNameError, InvalidEmailError, InvalidEnrollmentStatusError:
                for the first remaining field that fails.
        """
        return cls._build(parse_id(id), name, email, enrollment_status)

    @classmethod
    def _build(
        cls, participant_id: Id, name: str, email: str, enrollment_status: str
    ) -> "Participant":
        valid_name = create_name(name)
        valid_email = create_email(email)
        valid_status = create_enrollment_status(enrollment_status)
        return cls(
            id=participant_id,
            name=valid_name,
            email=valid_email,
            enrollment_status=valid_status,
        )

    def to_record(self) -> ParticipantRecord:
        return ParticipantRecord(
            id=str(self.id),
            name=str(self.name),
            email=str(self.email),
            enrollment_status=self.enrollment_status.value,
        )
