"""Unit tests for the Participant entity."""

from unittest import mock

import pytest

from teamboard.core.errors import (
    InvalidEmailError,
    InvalidEnrollmentStatusError,
    InvalidIdError,
    InvalidNameError,
)
from teamboard.core.participant import Participant
from teamboard.core.value_objects import EnrollmentStatus, create_id


class TestParticipantCreate:
    def test_create_assigns_new_id(self):
        participant = Participant.create(
            name="参加者1", email="member1@example.com", enrollment_status="在籍中"
        )

        assert len(participant.id) == 26
        assert participant.name == "参加者1"
        assert participant.email == "member1@example.com"
        assert participant.enrollment_status is EnrollmentStatus.ENROLLED

    def test_create_with_japanese_name(self):
        participant = Participant.create("田中太郎", "tanaka@example.com", "在籍中")

        assert participant.name == "田中太郎"

    def test_create_fails_on_name_first(self):
        with pytest.raises(InvalidNameError):
            Participant.create(name="", email="bad", enrollment_status="bad")

    def test_create_fails_on_email_before_status(self):
        with pytest.raises(InvalidEmailError):
            Participant.create(name="Alice", email="bad", enrollment_status="bad")

    def test_create_fails_on_status_last(self):
        with pytest.raises(InvalidEnrollmentStatusError):
            Participant.create(
                name="Alice", email="alice@example.com", enrollment_status="active"
            )

    def test_status_parser_not_reached_when_email_invalid(self):
        with mock.patch(
            "teamboard.core.participant.create_enrollment_status"
        ) as status_parser:
            with pytest.raises(InvalidEmailError):
                Participant.create(name="田中太郎", email="not-an-email", enrollment_status="在籍中")

        status_parser.assert_not_called()


class TestParticipantReconstruct:
    def test_reconstruct_keeps_id(self):
        participant_id = create_id()

        participant = Participant.reconstruct(
            id=participant_id,
            name="Bob",
            email="bob@example.com",
            enrollment_status="休会中",
        )

        assert participant.id == participant_id
        assert participant.enrollment_status is EnrollmentStatus.ON_LEAVE

    def test_reconstruct_checks_id_before_fields(self):
        with pytest.raises(InvalidIdError):
            Participant.reconstruct(
                id="not-a-ulid", name="", email="bad", enrollment_status="bad"
            )

    def test_reconstruct_rejects_missing_id(self):
        with pytest.raises(InvalidIdError):
            Participant.reconstruct(
                id=None, name="Bob", email="bob@example.com", enrollment_status="在籍中"
            )

    def test_to_record_is_plain_and_round_trips(self):
        original = Participant.create(
            name="Carol", email="carol@example.com", enrollment_status="退会済"
        )

        record = original.to_record()

        assert record == {
            "id": str(original.id),
            "name": "Carol",
            "email": "carol@example.com",
            "enrollment_status": "退会済",
        }
        assert type(record["name"]) is str
        assert Participant.reconstruct(**record) == original

    def test_participant_is_immutable(self):
        participant = Participant.create(
            name="Dave", email="dave@example.com", enrollment_status="在籍中"
        )

        with pytest.raises(AttributeError):
            participant.name = "Eve"
