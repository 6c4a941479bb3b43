"""Client-side session handling for the pmhome API.

Learn: The token in the SessionStore is what decides "logged in"; the
cached user profile is only for display and for picking the home area.
The server re-checks the token on every call.
"""

from pmhome.client.api import ApiClient, ApiError
from pmhome.client.guards import Allow, Redirect, home_for, require_auth, require_role
from pmhome.client.session import SessionStore

__all__ = [
    "Allow",
    "ApiClient",
    "ApiError",
    "Redirect",
    "SessionStore",
    "home_for",
    "require_auth",
    "require_role",
]
