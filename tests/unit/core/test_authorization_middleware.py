"""
Tests for role gates.
"""

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from core.middleware.authentication import AuthenticationMiddleware, Identity
from core.middleware.authorization import (
    InsufficientRole,
    require_recruiter,
    require_role,
    require_signed_in,
)
from core.middleware.error_handling import setup_error_handlers
from core.security import create_auth_token
from database.models.users import Role


class TestRequireRole:
    """Test the role check."""

    def test_admitted_role_passes(self):
        identity = Identity(username="rita01", role=Role.RECRUITER)
        assert require_role(identity, Role.RECRUITER) is identity

    def test_any_of_several_roles(self):
        identity = Identity(username="alice01", role=Role.APPLICANT)
        assert require_role(identity, Role.RECRUITER, Role.APPLICANT) is identity

    @pytest.mark.parametrize("role", [Role.APPLICANT, Role.INVALID])
    def test_other_roles_rejected(self, role):
        with pytest.raises(InsufficientRole):
            require_role(Identity(username="someone", role=role), Role.RECRUITER)


@pytest.fixture
def client():
    app = FastAPI()
    setup_error_handlers(app)

    @app.get("/recruiters")
    async def recruiters_only(identity: Identity = Depends(require_recruiter)):
        return {"username": identity.username}

    @app.get("/members", dependencies=[Depends(require_signed_in)])
    async def members():
        return {"ok": True}

    app.add_middleware(AuthenticationMiddleware)
    return TestClient(app)


def _auth(username: str, role: Role) -> dict:
    return {"Authorization": f"Bearer {create_auth_token(username, role.value)}"}


class TestRoleDependencies:
    """Test role gating on routes."""

    def test_recruiter_admitted(self, client):
        response = client.get("/recruiters", headers=_auth("rita01", Role.RECRUITER))

        assert response.status_code == 200
        assert response.json() == {"username": "rita01"}

    def test_applicant_forbidden(self, client):
        response = client.get("/recruiters", headers=_auth("alice01", Role.APPLICANT))

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "PERMISSION_DENIED"

    @pytest.mark.parametrize("role", [Role.RECRUITER, Role.APPLICANT])
    def test_signed_in_roles_admitted(self, client, role):
        assert client.get("/members", headers=_auth("someone", role)).status_code == 200

    def test_invalid_role_forbidden(self, client):
        assert client.get("/members", headers=_auth("someone", Role.INVALID)).status_code == 403
