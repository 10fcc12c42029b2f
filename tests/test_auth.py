import pytest
from fastapi import HTTPException

from utils.auth_utils import get_current_user, get_user_identifier, require_group


class TestUserIdentifier:

    @pytest.mark.parametrize("claims, expected", [
        ({"username": "alice", "email": "a@example.com"}, "alice"),
        ({"cognito:username": "bob", "sub": "abc"}, "bob"),
        ({"email": "carol@example.com"}, "carol@example.com"),
        ({}, "unknown"),
    ])
    def test_first_present_claim_is_used(self, claims, expected):
        assert get_user_identifier(claims) == expected


class TestRequireGroup:

    def test_member_passes_through(self):
        user = {"username": "alice", "cognito:groups": ["admin"]}
        assert require_group(["admin", "accountant"])(user) is user

    def test_outsider_is_forbidden(self):
        with pytest.raises(HTTPException) as exc_info:
            require_group(["admin"])({"username": "mallory", "cognito:groups": ["viewer"]})
        assert exc_info.value.status_code == 403

    def test_non_admin_is_refused(self, client, accounts):
        from main import app

        app.dependency_overrides[get_current_user] = lambda: {"username": "viewer", "cognito:groups": []}
        response = client.get("/financial-settings/")
        assert response.status_code == 403


class TestBearerToken:

    def test_missing_header_is_unauthorized(self, client):
        from main import app

        del app.dependency_overrides[get_current_user]
        response = client.get("/banks/")
        assert response.status_code == 401
        assert response.json()["detail"] == "Authorization header is missing"

    def test_malformed_header_is_unauthorized(self, client):
        from main import app

        del app.dependency_overrides[get_current_user]
        response = client.get("/banks/", headers={"Authorization": "Token abc"})
        assert response.status_code == 401
