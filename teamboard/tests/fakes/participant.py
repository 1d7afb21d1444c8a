"""Fake ParticipantRepositoryPort implementation for testing."""

from typing import Any

from teamboard.core.errors import (
    ParticipantNotFoundError,
    ParticipantRepositoryError,
    ParticipantRepositoryFindManyByError,
    ParticipantRepositoryUpdateError,
    ValidationError,
)
from teamboard.core.participant import Participant
from teamboard.core.ports import ParticipantRepositoryPort

FILTER_FIELDS = ("id", "team_id", "name", "email", "enrollment_status")
UPDATE_FIELDS = ("name", "email", "enrollment_status")


class FakeParticipantRepository(ParticipantRepositoryPort):
    """In-memory participant repository.

    Team membership lives in ``team_ids`` (participant id to team id), since
    the Participant entity itself does not carry its team.
    """

    def __init__(self):
        self.participants: dict[str, Participant] = {}
        self.team_ids: dict[str, str] = {}
        self.update_calls: list[tuple[str, dict[str, Any]]] = []
        self.find_many_by_calls: list[dict[str, Any]] = []
        self.fail_with: ParticipantRepositoryError | None = None

    def add(self, participant: Participant, team_id: str | None = None) -> None:
        """Seed a participant without going through ``save``."""
        self.participants[participant.id] = participant
        if team_id is not None:
            self.team_ids[participant.id] = team_id

    async def save(self, participant: Participant) -> Participant:
        if self.fail_with is not None:
            raise self.fail_with
        self.participants[participant.id] = participant
        return participant

    async def find_many_by(self, **filters: Any) -> list[Participant]:
        self.find_many_by_calls.append(filters)
        if self.fail_with is not None:
            raise self.fail_with
        unknown = set(filters) - set(FILTER_FIELDS)
        if unknown:
            raise ParticipantRepositoryFindManyByError(
                f"Unknown filter field(s): {', '.join(sorted(unknown))}"
            )

        def matches(participant: Participant) -> bool:
            for name, value in filters.items():
                if value is None:
                    continue
                if name == "team_id":
                    if self.team_ids.get(participant.id) != value:
                        return False
                elif getattr(participant, name) != value:
                    return False
            return True

        return [p for _, p in sorted(self.participants.items()) if matches(p)]

    async def update(self, participant_id: str, **fields: Any) -> Participant:
        self.update_calls.append((participant_id, fields))
        if self.fail_with is not None:
            raise self.fail_with
        unknown = set(fields) - set(UPDATE_FIELDS)
        if unknown:
            raise ParticipantRepositoryUpdateError(
                f"Unknown update field(s): {', '.join(sorted(unknown))}"
            )
        if participant_id not in self.participants:
            raise ParticipantNotFoundError()

        current = self.participants[participant_id]
        try:
            updated = Participant.reconstruct(**{**current.to_record(), **fields})
        except ValidationError as e:
            raise ParticipantRepositoryUpdateError(str(e)) from e
        self.participants[participant_id] = updated
        return updated
