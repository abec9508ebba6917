"""End-to-end tests of the /api auth surface over the in-memory gateway"""

from datetime import timedelta

import pytest

from conftest import PASSWORD, assert_no_password, make_settings, register

from echoverse.core.clock import utcnow
from echoverse.core.security import verify_password
from echoverse.domain.enums import UserRole

COOKIE = "echoverse.sid"


def login(client, username="alice", password=PASSWORD):
    return client.post("/api/login", json={"username": username, "password": password})


class TestRegister:

    def test_happy_path(self, client, email_service):
        response = register(client)

        assert response.status_code == 201
        body = response.json()
        assert body["username"] == "alice"
        assert body["email"] == "a@x.com"
        assert body["emailVerified"] is False
        assert body["role"] == "user"
        assert_no_password(body)
        assert COOKIE in response.cookies
        assert email_service.verification_emails[0][0] == "a@x.com"

    def test_registration_logs_the_user_in(self, client):
        register(client)
        response = client.get("/api/user")
        assert response.status_code == 200
        assert response.json()["username"] == "alice"

    def test_session_cookie_attributes(self, client):
        set_cookie = register(client).headers["set-cookie"].lower()
        assert "httponly" in set_cookie
        assert "samesite=lax" in set_cookie
        assert f"max-age={30 * 24 * 60 * 60}" in set_cookie
        assert "secure" not in set_cookie

    def test_duplicate_username(self, client):
        register(client)
        response = register(client, email="other@x.com")
        assert response.status_code == 400
        assert response.json()["message"] == "Username already exists"

    def test_duplicate_email(self, client):
        register(client)
        response = register(client, username="alice2")
        assert response.status_code == 400
        assert response.json()["message"] == "Email already exists"

    def test_password_mismatch(self, client):
        response = client.post("/api/register", json={
            "username": "alice", "email": "a@x.com", "password": PASSWORD, "confirmPassword": "nope",
        })
        assert response.status_code == 400
        assert response.json()["message"] == "Passwords do not match"

    def test_missing_fields(self, client):
        response = client.post("/api/register", json={"username": "alice"})
        assert response.status_code == 400
        assert response.json()["message"] == "All fields are required"
        assert {e["field"] for e in response.json()["errors"]} >= {"email", "password"}

    def test_non_privileged_role_is_accepted(self, client):
        response = register(client, role="educator")
        assert response.status_code == 201
        assert response.json()["role"] == "educator"

    def test_admin_role_cannot_be_self_assigned(self, client, gateway):
        response = register(client, role="admin")
        assert response.status_code == 400
        assert gateway.tables.users == {}

    def test_mail_failure_does_not_undo_registration(self, client, email_service):
        async def broken(*args):
            return False
        email_service.send_verification_email = broken

        assert register(client).status_code == 201
        assert login(client).status_code == 200

    def test_stored_password_is_scrypt_hash(self, client, gateway):
        register(client)
        stored = gateway.tables.users[1].password
        assert stored != PASSWORD
        assert verify_password(PASSWORD, stored)


class TestLoginLogout:

    def test_login_success(self, client):
        register(client)
        client.cookies.clear()

        response = login(client)

        assert response.status_code == 200
        assert response.json()["username"] == "alice"
        assert response.json()["lastLoginAt"] is not None
        assert_no_password(response.json())
        assert COOKIE in response.cookies

    def test_wrong_password_is_generic_401(self, client):
        register(client)
        client.cookies.clear()

        wrong = login(client, password="Wrong999")
        unknown = login(client, username="mallory")

        assert wrong.status_code == 401
        assert unknown.status_code == 401
        assert wrong.json() == unknown.json() == {"message": "Invalid username or password"}

    def test_current_user_requires_session(self, client):
        response = client.get("/api/user")
        assert response.status_code == 401
        assert response.json()["message"] == "Not authenticated"

    def test_tampered_cookie_is_anonymous(self, client):
        register(client)
        value = client.cookies.get(COOKIE)
        client.cookies.clear()
        client.cookies.set(COOKIE, value[:-3] + "abc")
        assert client.get("/api/user").status_code == 401

    def test_logout_destroys_session(self, client):
        register(client)
        old_cookie = client.cookies.get(COOKIE)

        response = client.post("/api/logout")
        assert response.status_code == 200
        assert response.json()["message"] == "Logged out successfully"
        assert client.get("/api/user").status_code == 401

        # Replaying the old cookie does not bring the session back
        client.cookies.clear()
        client.cookies.set(COOKIE, old_cookie)
        assert client.get("/api/user").status_code == 401

    def test_logout_reports_store_failure(self, client, gateway):
        register(client)

        async def broken(session_id):
            raise RuntimeError("store down")
        gateway.sessions.destroy = broken

        response = client.post("/api/logout")
        assert response.status_code == 500
        assert response.json()["message"] == "Error during logout"

    def test_expired_session_is_rejected(self, client, gateway):
        register(client)
        for session in gateway.tables.sessions.values():
            session.expires_at = utcnow() - timedelta(seconds=1)
        assert client.get("/api/user").status_code == 401


class TestEmailVerification:

    def test_verify_with_mailed_token(self, client, email_service):
        register(client)
        _, token = email_service.verification_emails[0]

        response = client.get("/api/verify-email", params={"token": token})
        assert response.status_code == 200
        assert response.json()["message"] == "Email verified successfully"
        assert client.get("/api/user").json()["emailVerified"] is True

        # Single use
        assert client.get("/api/verify-email", params={"token": token}).status_code == 400

    def test_missing_token(self, client):
        response = client.get("/api/verify-email")
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid token"

    def test_unknown_token(self, client):
        response = client.get("/api/verify-email", params={"token": "nope"})
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid or expired token"

    def test_expired_verification_token(self, client, gateway, email_service):
        register(client)
        _, token = email_service.verification_emails[0]
        gateway.tables.users[1].verification_token_expires_at = utcnow() - timedelta(minutes=1)

        response = client.get("/api/verify-email", params={"token": token})
        assert response.status_code == 400
        assert response.json()["message"] == "Verification link has expired"


class TestPasswordReset:

    def test_full_reset_flow(self, client, gateway, email_service):
        register(client)
        client.cookies.clear()

        response = client.post("/api/forgot-password", json={"email": "a@x.com"})
        assert response.status_code == 200
        stored = gateway.tables.users[1]
        assert stored.reset_password_token is not None
        assert stored.reset_password_expires > utcnow() + timedelta(minutes=59)
        to_email, token = email_service.reset_emails[0]
        assert to_email == "a@x.com"
        assert token == stored.reset_password_token

        response = client.post("/api/reset-password", json={
            "token": token, "password": "NewSecret1", "confirmPassword": "NewSecret1",
        })
        assert response.status_code == 200
        assert gateway.tables.users[1].reset_password_token is None
        assert gateway.tables.users[1].reset_password_expires is None

        assert login(client, password="NewSecret1").status_code == 200
        assert login(client, password=PASSWORD).status_code == 401

        again = client.post("/api/reset-password", json={
            "token": token, "password": "Other123", "confirmPassword": "Other123",
        })
        assert again.status_code == 400
        assert again.json()["message"] == "Invalid or expired token"

    def test_unknown_email_gets_same_answer(self, client, email_service):
        register(client)
        known = client.post("/api/forgot-password", json={"email": "a@x.com"})
        unknown = client.post("/api/forgot-password", json={"email": "ghost@x.com"})

        assert known.status_code == unknown.status_code == 200
        assert known.json() == unknown.json()
        assert len(email_service.reset_emails) == 1

    def test_missing_email(self, client):
        response = client.post("/api/forgot-password", json={})
        assert response.status_code == 400

    @pytest.mark.parametrize("requested", ["Alice@Example.COM", "Alice@example.com", "Alice@EXAMPLE.com"])
    def test_email_lookup_matches_registration_normalization(self, client, email_service, requested):
        assert register(client, email="Alice@Example.COM").json()["email"] == "Alice@example.com"

        response = client.post("/api/forgot-password", json={"email": requested})

        assert response.status_code == 200
        [(to_email, _)] = email_service.reset_emails
        assert to_email == "Alice@example.com"

    def test_malformed_email_is_rejected(self, client, email_service):
        response = client.post("/api/forgot-password", json={"email": "not-an-email"})
        assert response.status_code == 400
        assert email_service.reset_emails == []

    def test_expired_token_is_distinguished(self, client, gateway, email_service):
        register(client)
        client.post("/api/forgot-password", json={"email": "a@x.com"})
        _, token = email_service.reset_emails[0]
        gateway.tables.users[1].reset_password_expires = utcnow() - timedelta(seconds=1)

        response = client.post("/api/reset-password", json={
            "token": token, "password": "NewSecret1", "confirmPassword": "NewSecret1",
        })
        assert response.status_code == 400
        assert response.json()["message"] == "Token has expired"
        assert login(client, password=PASSWORD).status_code == 200

    def test_reset_input_mismatch(self, client):
        response = client.post("/api/reset-password", json={
            "token": "abc", "password": "NewSecret1", "confirmPassword": "different",
        })
        assert response.status_code == 400

    def test_second_request_supersedes_first_token(self, client, email_service):
        register(client)
        client.post("/api/forgot-password", json={"email": "a@x.com"})
        client.post("/api/forgot-password", json={"email": "a@x.com"})
        first, second = [token for _, token in email_service.reset_emails]

        stale = client.post("/api/reset-password", json={
            "token": first, "password": "NewSecret1", "confirmPassword": "NewSecret1",
        })
        fresh = client.post("/api/reset-password", json={
            "token": second, "password": "NewSecret1", "confirmPassword": "NewSecret1",
        })
        assert stale.status_code == 400
        assert fresh.status_code == 200


class TestChangePassword:

    def body(self, current=PASSWORD, new="NewSecret1", confirm="NewSecret1"):
        return {"currentPassword": current, "newPassword": new, "confirmPassword": confirm}

    def test_requires_authentication(self, client):
        assert client.post("/api/change-password", json=self.body()).status_code == 401

    def test_change_password(self, client):
        register(client)
        response = client.post("/api/change-password", json=self.body())
        assert response.status_code == 200
        assert response.json()["message"] == "Password changed successfully"
        assert login(client, password="NewSecret1").status_code == 200

    def test_wrong_current_password(self, client):
        register(client)
        response = client.post("/api/change-password", json=self.body(current="Wrong999"))
        assert response.status_code == 400
        assert response.json()["message"] == "Current password is incorrect"

    def test_confirmation_mismatch(self, client):
        register(client)
        response = client.post("/api/change-password", json=self.body(confirm="other"))
        assert response.status_code == 400

    def test_social_only_account(self, client, gateway):
        register(client)
        gateway.tables.users[1].password = None
        response = client.post("/api/change-password", json=self.body())
        assert response.status_code == 400
        assert response.json()["message"] == "User has no password (social login)"


class TestProfile:

    def test_update_profile(self, client):
        register(client)
        response = client.patch("/api/user", json={
            "fullName": "Alice Liddell", "bio": "hello", "onboardingStep": 3, "preferences": {"theme": "dark"},
        })
        assert response.status_code == 200
        body = response.json()
        assert body["fullName"] == "Alice Liddell"
        assert body["onboardingStep"] == 3
        assert body["preferences"] == {"theme": "dark"}
        assert_no_password(body)

    def test_update_requires_authentication(self, client):
        assert client.patch("/api/user", json={"bio": "x"}).status_code == 401

    @pytest.mark.parametrize("body", [
        {"onboardingStep": None},
        {"onboardingCompleted": None},
        {"preferences": None},
        {"onboardingStep": "abc"},
        {"onboardingStep": 0},
        {"onboardingCompleted": "maybe"},
        {"preferences": ["not", "a", "dict"]},
    ])
    def test_invalid_profile_values_are_rejected_and_account_survives(self, client, body):
        register(client)

        response = client.patch("/api/user", json=body)
        assert response.status_code == 400

        me = client.get("/api/user")
        assert me.status_code == 200
        assert me.json()["onboardingStep"] == 1
        assert me.json()["onboardingCompleted"] is False
        assert me.json()["preferences"] == {}

        client.cookies.clear()
        assert login(client).status_code == 200

    def test_text_fields_may_be_cleared(self, client):
        register(client)
        client.patch("/api/user", json={"bio": "hello"})
        response = client.patch("/api/user", json={"bio": None})
        assert response.status_code == 200
        assert response.json()["bio"] is None
        assert response.json()["onboardingStep"] == 1

    def test_non_admin_role_change_is_ignored(self, client):
        register(client)
        response = client.patch("/api/user", json={"role": "admin", "bio": "sneaky"})
        assert response.status_code == 200
        assert response.json()["role"] == "user"
        assert response.json()["bio"] == "sneaky"

    def test_admin_may_change_own_role(self, client, gateway):
        register(client)
        gateway.tables.users[1].role = UserRole.ADMIN
        response = client.patch("/api/user", json={"role": "business"})
        assert response.json()["role"] == "business"

    def test_public_profile(self, client):
        register(client)
        client.cookies.clear()
        response = client.get("/api/users/alice")
        assert response.status_code == 200
        assert_no_password(response.json())
        assert client.get("/api/users/nobody").status_code == 404

    def test_linked_accounts_empty_for_local_user(self, client):
        register(client)
        response = client.get("/api/user/accounts")
        assert response.status_code == 200
        assert response.json() == []


class TestAdmin:

    def test_role_assignment_requires_admin(self, client, gateway):
        register(client)
        register(client, username="bob", email="b@x.com")

        assert client.patch("/api/admin/users/1/role", json={"role": "admin"}).status_code == 403

        gateway.tables.users[2].role = UserRole.ADMIN
        response = client.patch("/api/admin/users/1/role", json={"role": "business"})
        assert response.status_code == 200
        assert response.json()["role"] == "business"
        assert_no_password(response.json())

    def test_role_assignment_requires_login(self, client):
        assert client.patch("/api/admin/users/1/role", json={"role": "user"}).status_code == 401

    def test_unknown_user(self, client, gateway):
        register(client)
        gateway.tables.users[1].role = UserRole.ADMIN
        assert client.patch("/api/admin/users/99/role", json={"role": "user"}).status_code == 404


class TestDemoUser:

    def test_demo_user_is_created_once(self, client):
        first = client.get("/api/create-demo-user")
        second = client.get("/api/create-demo-user")
        assert first.json()["message"] == "Demo user created"
        assert second.json()["message"] == "Demo user already exists"
        assert login(client, username="demo_user", password="Demo@123").status_code == 200

    def test_demo_user_hidden_in_production(self, gateway, email_service):
        from fastapi.testclient import TestClient
        from echoverse.main import create_app

        app = create_app(settings=make_settings(ENVIRONMENT="production"), gateway=gateway,
                         email_service=email_service, oauth_clients={})
        with TestClient(app) as client:
            assert client.get("/api/create-demo-user").status_code == 404


def test_secure_cookie_outside_development(gateway, email_service):
    from fastapi.testclient import TestClient
    from echoverse.main import create_app

    app = create_app(settings=make_settings(ENVIRONMENT="production"), gateway=gateway,
                     email_service=email_service, oauth_clients={})
    with TestClient(app) as client:
        assert "secure" in register(client).headers["set-cookie"].lower()


def test_health(client):
    assert client.get("/health").json()["status"] == "healthy"
