"""Team aggregate root and its participant collection.

Invariants:
    - A team holds between MIN_PARTICIPANTS and MAX_PARTICIPANTS members
    - No two members of a team share an email address
    - Data read back from storage passes the same checks as fresh input

TeamParticipants never mutates after construction. ``add`` and ``remove``
build a candidate list and run the full validation again, so a failed
operation leaves the original collection untouched.
"""

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, TypedDict

from .errors import TeamValidationError
from .participant import Participant, ParticipantRecord
from .value_objects import Id, TeamName, create_id, create_team_name, parse_id

MIN_PARTICIPANTS = 2
MAX_PARTICIPANTS = 4


class TeamPayload(TypedDict):
    id: str
    name: str
    participants: list[ParticipantRecord]


class TeamParticipants:
    """Ordered, validated collection of 2 to 4 participants."""

    __slots__ = ("_participants",)

    def __init__(self, participants: tuple[Participant, ...]):
        # Use create()/reconstruct(); this constructor does not validate.
        self._participants = participants

    @staticmethod
    def check_count(count: int) -> None:
        """Raise the participant-count error if ``count`` is out of range."""
        if count < MIN_PARTICIPANTS or count > MAX_PARTICIPANTS:
            raise TeamValidationError(
                f"チームの参加者は{MIN_PARTICIPANTS}人以上{MAX_PARTICIPANTS}人以下で"
                f"なければなりません。 現在の参加者数: {count}"
            )

    @staticmethod
    def _check_unique_emails(participants: Sequence[Participant]) -> None:
        seen: set[str] = set()
        for participant in participants:
            if participant.email in seen:
                raise TeamValidationError(
                    f"同じメールアドレスの参加者が複数存在します: {participant.email}"
                )
            seen.add(participant.email)

    @staticmethod
    def _check_unique_ids(participants: Sequence[Participant]) -> None:
        seen: set[str] = set()
        for participant in participants:
            if participant.id in seen:
                raise TeamValidationError(f"同じIDの参加者が複数存在します: {participant.id}")
            seen.add(participant.id)

    @classmethod
    def create(cls, participants: Sequence[Participant]) -> "TeamParticipants":
        """Validate count, then email and id uniqueness in scan order.

        Raises:
            TeamValidationError: With the actual count, or with the first
                duplicated email or id encountered.
        """
        candidates = tuple(participants)
        cls.check_count(len(candidates))
        cls._check_unique_emails(candidates)
        cls._check_unique_ids(candidates)
        return cls(candidates)

    @classmethod
    def reconstruct(cls, participants: Sequence[Participant]) -> "TeamParticipants":
        return cls.create(participants)

    @property
    def value(self) -> tuple[Participant, ...]:
        return tuple(self._participants)

    def __len__(self) -> int:
        return len(self._participants)

    def __iter__(self) -> Iterator[Participant]:
        return iter(self._participants)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TeamParticipants):
            return NotImplemented
        return self._participants == other._participants

    def __hash__(self) -> int:
        return hash(self._participants)

    def __repr__(self) -> str:
        return f"TeamParticipants({list(self._participants)!r})"

    def add(self, participant: Participant) -> "TeamParticipants":
        return TeamParticipants.create((*self._participants, participant))

    def remove(self, participant_id: str) -> "TeamParticipants":
        return TeamParticipants.create(
            [p for p in self._participants if p.id != participant_id]
        )

    def contains(self, participant_id: str) -> bool:
        return any(p.id == participant_id for p in self._participants)

    def find_by_email(self, email: str) -> Participant | None:
        for participant in self._participants:
            if participant.email == email:
                return participant
        return None

    def to_records(self) -> list[ParticipantRecord]:
        """Plain copies of every member for storage adapters and payloads.

        Each call returns newly built dicts; callers may mutate them freely.
        """
        return [participant.to_record() for participant in self._participants]


def _enrollment_status_of(row: Mapping[str, Any]) -> Any:
    if "enrollment_status" in row:
        return row["enrollment_status"]
    return row.get("enrollmentStatus")


def build_team_participants(rows: Any, with_ids: bool = False) -> TeamParticipants:
    """Parse raw participant rows into a validated TeamParticipants.

    Checks run in a fixed order: the rows container, the participant count,
    each row in input order, then email and id uniqueness.

    Args:
        rows: A list or tuple of mappings with ``name``, ``email`` and
            ``enrollment_status`` (or ``enrollmentStatus``) keys.
        with_ids: Rows carry existing ids and go through
            ``Participant.reconstruct`` instead of ``Participant.create``.

    Raises:
        ValidationError: The first failing rule.
    """
    if not isinstance(rows, (list, tuple)):
        raise TeamValidationError(f"参加者は配列で指定してください: {rows!r}")
    TeamParticipants.check_count(len(rows))

    members = []
    for row in rows:
        if not isinstance(row, Mapping):
            raise TeamValidationError(f"参加者はオブジェクトで指定してください: {row!r}")
        if with_ids:
            member = Participant.reconstruct(
                id=row.get("id"),
                name=row.get("name"),
                email=row.get("email"),
                enrollment_status=_enrollment_status_of(row),
            )
        else:
            member = Participant.create(
                name=row.get("name"),
                email=row.get("email"),
                enrollment_status=_enrollment_status_of(row),
            )
        members.append(member)
    return TeamParticipants.create(members)


@dataclass(frozen=True)
class Team:
    """Aggregate root: a named team and its participants.

    Validation order for both factories:
        1. id (generated by ``create``, checked by ``reconstruct``)
        2. team name
        3. participant count, before any participant row is parsed
        4. each participant row, in input order
        5. email, then id, uniqueness across the built participants
    """

    id: Id
    name: TeamName
    participants: TeamParticipants

    @classmethod
    def create(
        cls, name: str, participants: Sequence[Mapping[str, Any]]
    ) -> "Team":
        """Build a new team from unvalidated input.

        Args:
            name: Team name.
            participants: Rows with ``name``, ``email`` and
                ``enrollment_status`` keys.

        Raises:
            ValidationError: The first failing rule in the order above.
        """
        team_id = create_id()
        team_name = create_team_name(name)
        return cls(
            id=team_id, name=team_name, participants=build_team_participants(participants)
        )

    @classmethod
    def reconstruct(
        cls, id: str, name: str, participants: Sequence[Mapping[str, Any]]
    ) -> "Team":
        """Rehydrate a team from stored rows, re-applying every rule."""
        team_id = parse_id(id)
        team_name = create_team_name(name)
        return cls(
            id=team_id,
            name=team_name,
            participants=build_team_participants(participants, with_ids=True),
        )

    def rename(self, name: str) -> "Team":
        return Team(id=self.id, name=create_team_name(name), participants=self.participants)

    def add_participant(self, participant: Participant) -> "Team":
        return Team(
            id=self.id, name=self.name, participants=self.participants.add(participant)
        )

    def remove_participant(self, participant_id: str) -> "Team":
        return Team(
            id=self.id,
            name=self.name,
            participants=self.participants.remove(participant_id),
        )

    def to_payload(self) -> TeamPayload:
        return TeamPayload(
            id=str(self.id),
            name=str(self.name),
            participants=self.participants.to_records(),
        )
