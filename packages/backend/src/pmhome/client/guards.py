"""Route guards — decide whether a view may render or where to go instead.

Learn: require_auth only checks that a token is stored. It does not
validate it; the server does that on the first API call, and a 401 there
clears the token (see ApiClient). require_role compares the cached role
with the area's role and sends the user to their own home area.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Union

from pmhome.client.session import SessionStore
from pmhome.db.models import Role

LOGIN_PATH = "/login"


@dataclass(frozen=True)
class Allow:
    pass


@dataclass(frozen=True)
class Redirect:
    to: str
    state: dict[str, Any] = field(default_factory=dict)


GuardResult = Union[Allow, Redirect]


def home_for(role: Optional[str]) -> str:
    try:
        return Role(role).home
    except ValueError:
        return LOGIN_PATH


def require_auth(store: SessionStore, location: str) -> GuardResult:
    """Redirect to login (remembering where we were) when no token is stored."""
    if not store.get_token():
        return Redirect(LOGIN_PATH, state={"from": location})
    return Allow()


def require_role(store: SessionStore, required: Role, location: str) -> GuardResult:
    """Keep admins and employees in their own areas."""
    auth = require_auth(store, location)
    if isinstance(auth, Redirect):
        return auth

    user = store.get_user()
    if not user or not user.get("role"):
        return Redirect(LOGIN_PATH, state={"from": location})
    if user["role"] != Role(required).value:
        return Redirect(home_for(user["role"]))
    return Allow()
