"""
StaffDir Backend: API Integration Tests
========================================

What:  End-to-end HTTP tests through the full middleware stack.
Why:   The pipeline order (rate limit, CORS, auth, validation, store, error
       mapping) only shows up when a real request crosses all of it.
How:   httpx AsyncClient over ASGITransport; per-test SQLite database;
       injected clock for token expiry.

What we test:
    ✅ Register → login → create → read → replace → delete → 404
    ✅ Auth runs before validation on protected routes
    ✅ Missing / malformed / tampered / expired tokens → 401
    ✅ Validation reports every failed field and leaves stored data untouched
    ✅ Duplicate registration → 409, bad credentials → 401
    ✅ Non-integer ids → 400, missing ids → 404
    ✅ CORS preflight for the configured origin only, JSON 400 otherwise
    ✅ Storage failures and failed commits → 500 with a generic body
    ✅ Health check, request id propagation, access log fields
"""

import logging
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import ALLOWED_ORIGIN
from staffdir.exceptions import DatabaseError
from staffdir.services.employee_service import employee_service

CREDS = {"email": "a@b.com", "password": "secret1"}


async def _login(client, creds=CREDS):
    await client.post("/register", json=creds)
    response = await client.post("/login", json=creds)
    return {"Authorization": f"Bearer {response.json()['token']}"}


class TestEmployeeLifecycle:
    """CRUD over HTTP with a logged-in client."""

    @pytest.mark.asyncio
    async def test_full_flow(self, client):
        """Register, log in, then create, read, replace and delete one employee."""
        response = await client.post("/register", json=CREDS)
        assert response.status_code == 201
        assert response.json() == {"message": "User registered successfully"}

        response = await client.post("/login", json=CREDS)
        assert response.status_code == 200
        headers = {"Authorization": f"Bearer {response.json()['token']}"}

        response = await client.post("/employees", json={"name": "Jo", "position": "Eng"}, headers=headers)
        assert response.status_code == 201
        created = response.json()
        assert created["name"] == "Jo"
        assert created["position"] == "Eng"
        assert isinstance(created["id"], int)
        employee_id = created["id"]

        response = await client.get(f"/employees/{employee_id}")
        assert response.status_code == 200
        assert response.json() == created

        response = await client.get("/employees")
        assert response.json() == [created]

        response = await client.put(
            f"/employees/{employee_id}", json={"name": "Joanna", "position": "Lead"}, headers=headers
        )
        assert response.status_code == 200
        assert response.json() == {"id": employee_id, "name": "Joanna", "position": "Lead"}

        response = await client.delete(f"/employees/{employee_id}", headers=headers)
        assert response.status_code == 200
        assert response.json() == {"message": "Employee deleted successfully"}

        response = await client.get(f"/employees/{employee_id}")
        assert response.status_code == 404
        assert response.json()["code"] == "not_found"

    @pytest.mark.asyncio
    async def test_rejected_replace_leaves_record_unchanged(self, client, auth_header):
        """A PUT that fails validation does not touch the stored record."""
        created = (
            await client.post("/employees", json={"name": "Jo", "position": "Eng"}, headers=auth_header)
        ).json()

        response = await client.put(
            f"/employees/{created['id']}", json={"name": "A", "position": "Eng"}, headers=auth_header
        )
        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "validation_error"
        assert [d["field"] for d in body["details"]] == ["name"]
        assert body["details"][0]["message"] == "Name must be at least 2 characters"

        assert (await client.get(f"/employees/{created['id']}")).json() == created

    @pytest.mark.asyncio
    async def test_replace_and_delete_missing(self, client, auth_header):
        """PUT and DELETE on an unknown id are 404."""
        response = await client.put(
            "/employees/999", json={"name": "Jo", "position": "Eng"}, headers=auth_header
        )
        assert response.status_code == 404

        response = await client.delete("/employees/999", headers=auth_header)
        assert response.status_code == 404
        assert response.json()["error"] == "Employee not found"

    @pytest.mark.asyncio
    async def test_replace_with_same_values(self, client, auth_header):
        """Re-sending the current values is a 200, not a 404."""
        created = (
            await client.post("/employees", json={"name": "Jo", "position": "Eng"}, headers=auth_header)
        ).json()
        response = await client.put(
            f"/employees/{created['id']}", json={"name": "Jo", "position": "Eng"}, headers=auth_header
        )
        assert response.status_code == 200
        assert response.json() == created

    @pytest.mark.asyncio
    async def test_non_integer_id(self, client):
        """A non-numeric id is a 400 on field employee_id."""
        response = await client.get("/employees/abc")
        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "validation_error"
        assert body["details"][0]["field"] == "employee_id"

    @pytest.mark.asyncio
    async def test_every_violation_reported(self, client, auth_header):
        """All failed fields come back in one 400."""
        response = await client.post("/employees", json={"name": "A"}, headers=auth_header)
        assert response.status_code == 400
        assert {d["field"] for d in response.json()["details"]} == {"name", "position"}

    @pytest.mark.asyncio
    async def test_overlong_name(self, client, auth_header):
        """A name longer than the column is a 400 and nothing is stored."""
        response = await client.post(
            "/employees", json={"name": "N" * 300, "position": "Eng"}, headers=auth_header
        )
        assert response.status_code == 400
        assert response.json()["details"] == [
            {"field": "name", "message": "Name must be at most 255 characters"}
        ]
        assert (await client.get("/employees")).json() == []

    @pytest.mark.asyncio
    async def test_non_object_body(self, client, auth_header):
        """Arrays and unparseable JSON are a single body violation."""
        response = await client.post("/employees", json=["Jo", "Eng"], headers=auth_header)
        assert response.status_code == 400
        assert response.json()["details"] == [
            {"field": "body", "message": "Request body must be a JSON object"}
        ]

        response = await client.post(
            "/employees",
            content=b"{not json",
            headers={**auth_header, "Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "body"


class TestAuthentication:
    """Bearer token handling on protected routes."""

    @pytest.mark.asyncio
    async def test_missing_token(self, client):
        """No Authorization header is 401 token_missing with a Bearer challenge."""
        response = await client.post("/employees", json={"name": "Jo", "position": "Eng"})
        assert response.status_code == 401
        assert response.json()["code"] == "token_missing"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "authorization",
        ["Basic dXNlcjpwYXNz", "Bearer", "Bearer not.a.token", "Token abc"],
    )
    async def test_unusable_token(self, client, authorization):
        """Wrong scheme, empty or unparseable tokens are 401 token_invalid."""
        response = await client.delete("/employees/1", headers={"Authorization": authorization})
        assert response.status_code == 401
        assert response.json()["code"] == "token_invalid"

    @pytest.mark.asyncio
    async def test_tampered_token(self, client, auth_header):
        """A token with a modified signature is rejected."""
        token = auth_header["Authorization"].split(" ", 1)[1]
        head, payload, signature = token.split(".")
        flipped = ("A" if signature[0] != "A" else "B") + signature[1:]
        headers = {"Authorization": f"Bearer {head}.{payload}.{flipped}"}

        response = await client.post("/employees", json={"name": "Jo", "position": "Eng"}, headers=headers)
        assert response.status_code == 401
        assert response.json()["code"] == "token_invalid"

    @pytest.mark.asyncio
    async def test_expired_token(self, client, auth_header, clock):
        """The token works until its last second and is rejected at expiry."""
        clock.advance(3599)
        response = await client.post("/employees", json={"name": "Jo", "position": "Eng"}, headers=auth_header)
        assert response.status_code == 201

        clock.advance(1)
        response = await client.post("/employees", json={"name": "Jo", "position": "Eng"}, headers=auth_header)
        assert response.status_code == 401
        assert response.json()["code"] == "token_invalid"

    @pytest.mark.asyncio
    async def test_auth_runs_before_validation(self, client):
        """Invalid bodies on protected routes still get 401 first."""
        response = await client.post("/employees", json={"name": "A"})
        assert response.status_code == 401

        response = await client.put("/employees/1", json=[], headers={"Authorization": "Bearer x"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_reads_are_public(self, client):
        """GET routes need no token."""
        assert (await client.get("/employees")).status_code == 200
        assert (await client.get("/employees/1")).status_code == 404


class TestRegistrationAndLogin:
    """POST /register and POST /login."""

    @pytest.mark.asyncio
    async def test_duplicate_registration(self, client):
        """The second registration of an email is 409."""
        assert (await client.post("/register", json=CREDS)).status_code == 201

        response = await client.post("/register", json=CREDS)
        assert response.status_code == 409
        assert response.json()["code"] == "conflict"

    @pytest.mark.asyncio
    async def test_register_reports_all_violations(self, client):
        """Bad email and short password are reported together."""
        response = await client.post("/register", json={"email": "not-an-email", "password": "123"})
        assert response.status_code == 400
        fields = {d["field"]: d["message"] for d in response.json()["details"]}
        assert fields == {
            "email": "Invalid email address",
            "password": "Password must be at least 6 characters",
        }

    @pytest.mark.asyncio
    async def test_register_empty_body(self, client):
        """An empty body is a body violation, not a crash."""
        response = await client.post("/register")
        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "body"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("email", [".a@b.com", "a..b@example.com", "a.@example.com"])
    async def test_register_rejects_malformed_email(self, client, email):
        """Misplaced dots in the local part are rejected."""
        response = await client.post("/register", json={"email": email, "password": "secret1"})
        assert response.status_code == 400
        assert response.json()["details"] == [{"field": "email", "message": "Invalid email address"}]

    @pytest.mark.asyncio
    async def test_login_wrong_password_and_unknown_email_look_the_same(self, client):
        """Login failures do not reveal whether the email exists."""
        await client.post("/register", json=CREDS)

        wrong = await client.post("/login", json={"email": "a@b.com", "password": "nope-nope"})
        unknown = await client.post("/login", json={"email": "x@b.com", "password": "secret1"})

        assert wrong.status_code == unknown.status_code == 401
        assert wrong.json()["error"] == unknown.json()["error"] == "Invalid email or password"
        assert wrong.json()["code"] == "invalid_credentials"

    @pytest.mark.asyncio
    async def test_login_validation(self, client):
        """An empty login password is a 400."""
        response = await client.post("/login", json={"email": "a@b.com", "password": ""})
        assert response.status_code == 400
        assert response.json()["details"] == [
            {"field": "password", "message": "Password is required"}
        ]

    @pytest.mark.asyncio
    async def test_any_registered_user_can_write(self, client):
        """Any authenticated user may delete records created by another."""
        first = await _login(client, {"email": "one@b.com", "password": "secret1"})
        second = await _login(client, {"email": "two@b.com", "password": "secret2"})

        created = (
            await client.post("/employees", json={"name": "Jo", "position": "Eng"}, headers=first)
        ).json()
        response = await client.delete(f"/employees/{created['id']}", headers=second)
        assert response.status_code == 200


class TestCORS:
    """Preflight and simple-request CORS behaviour."""

    @pytest.mark.asyncio
    async def test_preflight_allowed_origin(self, client):
        """The configured origin gets an empty 204 with CORS headers."""
        response = await client.options(
            "/employees",
            headers={
                "Origin": ALLOWED_ORIGIN,
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "Authorization, Content-Type",
            },
        )
        assert response.status_code == 204
        assert response.content == b""
        assert response.headers["access-control-allow-origin"] == ALLOWED_ORIGIN
        assert response.headers["access-control-allow-credentials"] == "true"
        assert "POST" in response.headers["access-control-allow-methods"]

    @pytest.mark.asyncio
    async def test_preflight_other_origin(self, client):
        """Other origins get a JSON 400 and no allow-origin header."""
        response = await client.options(
            "/employees",
            headers={
                "Origin": "http://evil.example",
                "Access-Control-Request-Method": "POST",
                "X-Request-ID": "pre-1",
            },
        )
        assert response.status_code == 400
        assert "access-control-allow-origin" not in response.headers
        assert response.headers["content-type"] == "application/json"
        assert response.json() == {
            "error": "Disallowed CORS origin",
            "code": "cors_rejected",
            "request_id": "pre-1",
        }

    @pytest.mark.asyncio
    async def test_simple_request_headers(self, client):
        """Only the configured origin is echoed on normal requests."""
        allowed = await client.get("/employees", headers={"Origin": ALLOWED_ORIGIN})
        assert allowed.headers["access-control-allow-origin"] == ALLOWED_ORIGIN

        other = await client.get("/employees", headers={"Origin": "http://evil.example"})
        assert "access-control-allow-origin" not in other.headers


class TestErrorsAndOperations:
    """Error mapping, health, request ids and access logs."""

    @pytest.mark.asyncio
    async def test_storage_failure_is_generic_500(self, client, monkeypatch):
        """A DatabaseError becomes a generic 500 that hides its context."""
        monkeypatch.setattr(
            employee_service,
            "list",
            AsyncMock(side_effect=DatabaseError(context={"query": "SELECT * FROM employees"})),
        )

        response = await client.get("/employees", headers={"X-Request-ID": "trace-42"})
        assert response.status_code == 500
        body = response.json()
        assert body == {
            "error": "An internal error occurred. Please try again later.",
            "code": "server_error",
            "request_id": "trace-42",
        }
        assert "SELECT" not in response.text

    @pytest.mark.asyncio
    async def test_health(self, client):
        """GET /health reports a connected database."""
        response = await client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"

    @pytest.mark.asyncio
    async def test_request_id_generated_and_echoed(self, client):
        """A request id is generated when absent and echoed when supplied."""
        generated = await client.get("/employees")
        assert len(generated.headers["X-Request-ID"]) == 8

        echoed = await client.get("/employees/999", headers={"X-Request-ID": "abc123"})
        assert echoed.headers["X-Request-ID"] == "abc123"
        assert echoed.json()["request_id"] == "abc123"

    @pytest.mark.asyncio
    async def test_unsafe_request_id_is_replaced(self, client):
        """Ids with spaces or control characters are not trusted."""
        response = await client.get("/employees", headers={"X-Request-ID": "abc def\tforged=1"})
        rid = response.headers["X-Request-ID"]
        assert rid != "abc def\tforged=1"
        assert len(rid) == 8

    @pytest.mark.asyncio
    async def test_access_log_records_subject_and_quota(self, client, auth_header, caplog):
        """Access log lines carry the bearer subject and remaining quota, never the body."""
        caplog.set_level(logging.INFO, logger="staffdir.access")

        await client.post("/employees", json={"name": "Jo", "position": "Eng"}, headers=auth_header)
        await client.get("/employees")

        entries = {(r.method, r.path): r for r in caplog.records if r.name == "staffdir.access"}
        create = entries[("POST", "/employees")]
        listing = entries[("GET", "/employees")]

        assert create.status == 201
        assert create.subject == "1"
        assert create.quota.endswith("/1000")
        assert listing.subject == "-"
        assert "subject=1" in create.getMessage()
        assert "secret1" not in caplog.text

    @pytest.mark.asyncio
    async def test_failed_commit_is_500_and_nothing_stored(self, client, auth_header, monkeypatch):
        """If the commit fails the client gets 500, not 201, and the list stays empty."""
        async def commit(self):
            raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

        monkeypatch.setattr(AsyncSession, "commit", commit)

        response = await client.post("/employees", json={"name": "Jo", "position": "Eng"}, headers=auth_header)
        assert response.status_code == 500
        assert response.json()["code"] == "server_error"
        assert "disk" not in response.text

        assert (await client.get("/employees")).json() == []
