"""Bearer parsing and RoleGate unit tests."""

import pytest

from pmhome.auth.dependencies import CurrentIdentity, RoleGate, parse_bearer
from pmhome.db.models import Role
from pmhome.errors import AuthenticationError, AuthorizationError


def test_parse_bearer():
    assert parse_bearer("Bearer abc.def.ghi") == "abc.def.ghi"
    assert parse_bearer("  Bearer abc  ") == "abc"


@pytest.mark.parametrize(
    "header", [None, "", "Bearer", "bearer abc", "Basic abc", "Bearer a b", "abc"]
)
def test_parse_bearer_rejects(header):
    with pytest.raises(AuthenticationError) as exc:
        parse_bearer(header)
    assert exc.value.status_code == 401
    assert exc.value.message == "Unauthorized"


@pytest.mark.asyncio
async def test_role_gate_allows_declared_roles():
    gate = RoleGate(Role.ADMIN)
    admin = CurrentIdentity(user_id="u1", role=Role.ADMIN)
    assert await gate(identity=admin) is admin


@pytest.mark.asyncio
async def test_role_gate_denies_other_roles():
    gate = RoleGate(Role.ADMIN)
    with pytest.raises(AuthorizationError) as exc:
        await gate(identity=CurrentIdentity(user_id="u2", role=Role.EMPLOYEE))
    assert exc.value.status_code == 403


@pytest.mark.asyncio
async def test_role_gate_multiple_roles():
    gate = RoleGate(Role.ADMIN, Role.EMPLOYEE)
    employee = CurrentIdentity(user_id="u2", role=Role.EMPLOYEE)
    assert await gate(identity=employee) is employee


def test_role_gate_needs_a_role():
    with pytest.raises(ValueError):
        RoleGate()


def test_identity_has_role():
    identity = CurrentIdentity(user_id="u1", role=Role.EMPLOYEE)
    assert identity.has_role(Role.EMPLOYEE)
    assert identity.has_role(Role.ADMIN, Role.EMPLOYEE)
    assert not identity.has_role(Role.ADMIN)
