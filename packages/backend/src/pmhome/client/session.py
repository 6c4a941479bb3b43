"""File-backed session store.

Learn: One JSON file, one well-known key for the token (pm_token) and one
for the cached profile (pm_user). A missing key means logged out. A file
that can't be read or parsed also reads as logged out, never as an error.
"""

import json
import os
from pathlib import Path
from typing import Any, Optional

TOKEN_KEY = "pm_token"
USER_KEY = "pm_user"


def default_session_path() -> Path:
    override = os.environ.get("PMHOME_SESSION_FILE")
    if override:
        return Path(override)
    return Path.home() / ".config" / "pmhome" / "session.json"


class SessionStore:
    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else default_session_path()

    def _read(self) -> dict[str, Any]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict[str, Any]) -> None:
        if not data:
            self.path.unlink(missing_ok=True)
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data), encoding="utf-8")
        os.chmod(self.path, 0o600)

    def get_token(self) -> Optional[str]:
        token = self._read().get(TOKEN_KEY)
        return token if isinstance(token, str) and token else None

    def set_token(self, token: Optional[str]) -> None:
        """Store the token; a falsy token removes it."""
        data = self._read()
        if token:
            data[TOKEN_KEY] = token
        else:
            data.pop(TOKEN_KEY, None)
        self._write(data)

    def remove_token(self) -> None:
        self.set_token(None)

    def get_user(self) -> Optional[dict[str, Any]]:
        user = self._read().get(USER_KEY)
        return user if isinstance(user, dict) else None

    def set_user(self, user: Optional[dict[str, Any]]) -> None:
        data = self._read()
        if user:
            data[USER_KEY] = user
        else:
            data.pop(USER_KEY, None)
        self._write(data)

    def clear(self) -> None:
        self._write({})

    def is_logged_in(self) -> bool:
        return self.get_token() is not None
