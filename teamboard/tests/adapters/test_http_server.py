"""Tests for the JSON HTTP API.

Each test starts a real TeamboardHTTPServer on a free local port, backed by
the in-memory fake repositories, and talks to it with httpx.
"""

import asyncio
import logging

import httpx
import pytest

from teamboard.adapters.http.controllers import (
    AssignmentController,
    BadRequestError,
    ParticipantController,
    TaskController,
    TeamController,
)
from teamboard.adapters.http.server import (
    MAX_BODY_SIZE,
    TeamboardHTTPServer,
    build_routes,
    status_for_error,
)
from teamboard.core.errors import (
    InvalidIdError,
    InvalidNameError,
    TaskRepositoryFindByIdError,
    TaskRepositorySaveError,
)
from teamboard.core.participant import Participant
from teamboard.core.task_use_cases import (
    FindTaskUseCaseError,
    FindTaskUseCaseNotFoundError,
)
from teamboard.core.value_objects import create_id
from teamboard.tests.fakes import (
    FakeAssignmentRepository,
    FakeParticipantRepository,
    FakeTaskRepository,
    FakeTeamRepository,
)

API_KEY = "test-key"

TEAM_BODY = {
    "name": "チームA",
    "participants": [
        {"name": "参加者1", "email": "member1@example.com", "enrollment_status": "在籍中"},
        {"name": "参加者2", "email": "member2@example.com", "enrollment_status": "在籍中"},
    ],
}


class Repositories:
    def __init__(self):
        self.teams = FakeTeamRepository()
        self.tasks = FakeTaskRepository()
        self.participants = FakeParticipantRepository()
        self.assignments = FakeAssignmentRepository()


def make_routes(repos: Repositories):
    return build_routes(
        tasks=TaskController(repos.tasks),
        teams=TeamController(repos.teams),
        participants=ParticipantController(repos.participants),
        assignments=AssignmentController(repos.assignments, repos.tasks, repos.participants),
    )


@pytest.fixture
def repos() -> Repositories:
    return Repositories()


@pytest.fixture
async def client(repos):
    """Open server without authentication."""
    server = TeamboardHTTPServer(make_routes(repos), host="127.0.0.1", port=0)
    await server.start()
    async with httpx.AsyncClient(base_url=f"http://127.0.0.1:{server.port}") as http:
        yield http
    await server.stop()


@pytest.fixture
async def auth_server(repos):
    server = TeamboardHTTPServer(
        make_routes(repos), host="127.0.0.1", port=0, api_key=API_KEY, require_auth=True
    )
    await server.start()
    yield server
    await server.stop()


# ============================================================================
# Error mapping
# ============================================================================


class TestStatusForError:
    def test_not_found(self):
        assert status_for_error(FindTaskUseCaseNotFoundError("Task not found")) == 404

    def test_use_case_error(self):
        assert status_for_error(FindTaskUseCaseError("Invalid id: x")) == 400

    def test_validation_and_bad_request(self):
        assert status_for_error(InvalidNameError("")) == 400
        assert status_for_error(BadRequestError("Missing title")) == 400

    def test_unexpected(self):
        assert status_for_error(RuntimeError("boom")) == 500
        assert status_for_error(TaskRepositorySaveError("raw")) == 500

    def test_use_case_error_caused_by_repository(self):
        error = FindTaskUseCaseError("connection refused")
        error.__cause__ = TaskRepositoryFindByIdError("connection refused")

        assert status_for_error(error) == 500

    def test_use_case_error_caused_by_validation(self):
        error = FindTaskUseCaseError("Invalid id: x")
        error.__cause__ = InvalidIdError("x")

        assert status_for_error(error) == 400


# ============================================================================
# Server lifecycle and auth
# ============================================================================


class TestServerLifecycle:
    @pytest.mark.asyncio
    async def test_port_zero_binds_free_port(self, repos):
        server = TeamboardHTTPServer(make_routes(repos), host="127.0.0.1", port=0)

        await server.start()
        try:
            assert server.port != 0
        finally:
            await server.stop()

    @pytest.mark.asyncio
    async def test_health_is_public(self, auth_server):
        async with httpx.AsyncClient() as http:
            response = await http.get(f"http://127.0.0.1:{auth_server.port}/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    @pytest.mark.asyncio
    async def test_missing_key_rejected(self, auth_server):
        async with httpx.AsyncClient() as http:
            response = await http.get(f"http://127.0.0.1:{auth_server.port}/tasks")

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_wrong_key_rejected(self, auth_server):
        async with httpx.AsyncClient() as http:
            response = await http.get(
                f"http://127.0.0.1:{auth_server.port}/tasks",
                headers={"Authorization": "Bearer wrong"},
            )

        assert response.status_code == 401

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "headers",
        [{"Authorization": f"Bearer {API_KEY}"}, {"X-API-Key": API_KEY}],
    )
    async def test_valid_key_accepted(self, auth_server, headers):
        async with httpx.AsyncClient() as http:
            response = await http.get(
                f"http://127.0.0.1:{auth_server.port}/tasks", headers=headers
            )

        assert response.status_code == 200
        assert response.json() == []

    def test_require_auth_without_key_warns(self, repos, caplog):
        TeamboardHTTPServer(make_routes(repos), require_auth=True)

        assert "no API key provided" in caplog.text


# ============================================================================
# Request handling
# ============================================================================


class TestRequestHandling:
    @pytest.mark.asyncio
    async def test_unknown_route(self, client):
        response = await client.get("/nowhere")

        assert response.status_code == 404
        assert response.json() == {"error": "Not found"}

    @pytest.mark.asyncio
    async def test_wrong_method_is_not_found(self, client):
        response = await client.delete("/tasks")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_invalid_json(self, client):
        response = await client.post(
            "/tasks", content=b"{not json", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid JSON body"}

    @pytest.mark.asyncio
    async def test_non_object_body(self, client):
        response = await client.post("/tasks", json=["title"])

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_oversized_body(self, client):
        reader, writer = await asyncio.open_connection("127.0.0.1", client.base_url.port)
        writer.write(
            b"POST /tasks HTTP/1.1\r\nHost: localhost\r\n"
            + f"Content-Length: {MAX_BODY_SIZE + 1}\r\n\r\n".encode()
        )
        await writer.drain()

        status_line = await reader.readline()
        writer.close()
        await writer.wait_closed()

        assert b" 413 " in status_line

    @pytest.mark.asyncio
    async def test_missing_field(self, client):
        response = await client.post("/tasks", json={})

        assert response.status_code == 400
        assert response.json() == {"error": "Missing title"}

    @pytest.mark.asyncio
    async def test_repository_failure_is_server_error(self, client, repos, caplog):
        repos.tasks.fail_with = TaskRepositorySaveError("database is locked")

        with caplog.at_level(logging.ERROR):
            response = await client.post("/tasks", json={"title": "Write docs"})

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}
        assert "CreateTaskUseCaseError: database is locked" in caplog.text


# ============================================================================
# Resources
# ============================================================================


class TestTaskRoutes:
    @pytest.mark.asyncio
    async def test_task_lifecycle(self, client):
        created = await client.post("/tasks", json={"title": "Write docs"})
        assert created.status_code == 201
        task_id = created.json()["id"]

        renamed = await client.patch(f"/tasks/{task_id}", json={"title": "Review docs"})
        assert renamed.json()["title"] == "Review docs"

        toggled = await client.post(f"/tasks/{task_id}/toggle")
        assert toggled.json()["is_done"] is True

        todo = await client.get("/tasks", params={"filter": "todo"})
        assert todo.json() == []

        done = await client.post(f"/tasks/{task_id}/done")
        assert done.status_code == 200
        assert (await client.get(f"/tasks/{task_id}")).json() == {
            "id": task_id,
            "title": "Review docs",
            "is_done": True,
        }

    @pytest.mark.asyncio
    async def test_missing_task_is_404(self, client):
        response = await client.get(f"/tasks/{create_id()}")

        assert response.status_code == 404
        assert response.json() == {"error": "FindTaskUseCaseNotFoundError: Task not found"}

    @pytest.mark.asyncio
    async def test_invalid_task_id_is_400(self, client):
        response = await client.get("/tasks/not-a-ulid")

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_filter_is_400(self, client):
        response = await client.get("/tasks", params={"filter": "later"})

        assert response.status_code == 400


class TestTeamRoutes:
    @pytest.mark.asyncio
    async def test_team_lifecycle(self, client):
        created = await client.post("/teams", json=TEAM_BODY)
        assert created.status_code == 201
        team = created.json()
        assert team["participants"][0]["name"] == "参加者1"

        listed = await client.get("/teams")
        assert [t["id"] for t in listed.json()] == [team["id"]]

        updated = await client.patch(f"/teams/{team['id']}", json={"name": "チームB"})
        assert updated.json()["name"] == "チームB"

        deleted = await client.delete(f"/teams/{team['id']}")
        assert deleted.status_code == 204
        assert deleted.content == b""

        missing = await client.get(f"/teams/{team['id']}")
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_too_few_participants(self, client):
        body = {**TEAM_BODY, "participants": TEAM_BODY["participants"][:1]}

        response = await client.post("/teams", json=body)

        assert response.status_code == 400
        assert "現在の参加者数: 1" in response.json()["error"]

    @pytest.mark.asyncio
    async def test_participants_must_be_objects(self, client):
        response = await client.post("/teams", json={"name": "チームA", "participants": "x"})

        assert response.status_code == 400
        assert response.json() == {"error": "participants must be a list of objects"}

    @pytest.mark.asyncio
    async def test_update_missing_team(self, client):
        response = await client.patch(f"/teams/{create_id()}", json={"name": "Ghost"})

        assert response.status_code == 404


class TestAssignmentRoutes:
    @pytest.mark.asyncio
    async def test_assign_and_progress(self, client, repos):
        participant = Participant.create(
            name="参加者1", email="member1@example.com", enrollment_status="在籍中"
        )
        repos.participants.add(participant)
        task_id = (await client.post("/tasks", json={"title": "Write docs"})).json()["id"]

        assigned = await client.post(
            "/assignments", json={"task_id": task_id, "participant_id": participant.id}
        )
        assert assigned.status_code == 201
        assignment = assigned.json()
        assert assignment["progress_status"] == "未着手"

        moved = await client.patch(
            f"/assignments/{assignment['id']}", json={"progress_status": "完了"}
        )
        assert moved.json()["progress_status"] == "完了"

        listed = await client.get("/assignments", params={"progress_status": "完了"})
        assert [a["id"] for a in listed.json()] == [assignment["id"]]

    @pytest.mark.asyncio
    async def test_duplicate_assignment_is_bad_request(self, client, repos):
        participant = Participant.create(
            name="参加者1", email="member1@example.com", enrollment_status="在籍中"
        )
        repos.participants.add(participant)
        task_id = (await client.post("/tasks", json={"title": "Write docs"})).json()["id"]
        body = {"task_id": task_id, "participant_id": participant.id}

        first = await client.post("/assignments", json=body)
        second = await client.post("/assignments", json=body)

        assert first.status_code == 201
        assert second.status_code == 400
        assert "is already assigned" in second.json()["error"]

    @pytest.mark.asyncio
    async def test_assign_unknown_participant(self, client):
        task_id = (await client.post("/tasks", json={"title": "Write docs"})).json()["id"]

        response = await client.post(
            "/assignments", json={"task_id": task_id, "participant_id": str(create_id())}
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_update_enrollment(self, client, repos):
        participant = Participant.create(
            name="参加者1", email="member1@example.com", enrollment_status="在籍中"
        )
        repos.participants.add(participant)

        response = await client.patch(
            f"/participants/{participant.id}", json={"enrollment_status": "退会済"}
        )

        assert response.status_code == 200
        assert response.json()["enrollment_status"] == "退会済"
