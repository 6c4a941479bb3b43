"""Async HTTP client for the pmhome API.

Learn: httpx event hooks play the role of request/response interceptors:
- request hook: attach `Authorization: Bearer <token>` when one is stored
- response hook: on 401, forget the token and ask for a redirect to the
  login entry point, unless we are already there or this was the login
  call itself (otherwise a failed login would loop).

Fixed 10s timeout, no retries: failures surface to the caller at once.
"""

from typing import Any, Optional

import httpx

from pmhome.client.guards import LOGIN_PATH
from pmhome.client.session import SessionStore

DEFAULT_TIMEOUT = 10.0
LOGIN_ENDPOINT = "/auth/login"
LOGIN_LOCATIONS = {LOGIN_PATH, "/"}


class ApiError(Exception):
    """Non-2xx response from the API."""

    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"{status_code}: {detail}")


def _detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict) and body.get("detail"):
        return str(body["detail"])
    return response.reason_phrase


class ApiClient:
    """Talks to the API on behalf of one stored session."""

    def __init__(
        self,
        base_url: str,
        store: SessionStore,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.store = store
        self.location = "/"
        self.pending_redirect: Optional[str] = None
        self._http = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json"},
            event_hooks={
                "request": [self._attach_token],
                "response": [self._on_response],
            },
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # ─── Interceptors ───────────────────────────────────

    async def _attach_token(self, request: httpx.Request) -> None:
        token = self.store.get_token()
        if token:
            request.headers["Authorization"] = f"Bearer {token}"

    async def _on_response(self, response: httpx.Response) -> None:
        if response.status_code != 401:
            return
        self.store.remove_token()
        is_login_request = response.request.url.path.endswith(LOGIN_ENDPOINT)
        if self.location not in LOGIN_LOCATIONS and not is_login_request:
            self.pending_redirect = LOGIN_PATH

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        response = await self._http.request(method, path, **kwargs)
        if response.is_error:
            raise ApiError(response.status_code, _detail(response))
        return response

    # ─── Auth ───────────────────────────────────────────

    async def login(self, email: str, password: str) -> dict[str, Any]:
        response = await self._request(
            "POST",
            LOGIN_ENDPOINT,
            json={"email": (email or "").strip().lower(), "password": password or ""},
        )
        data = response.json()
        self.store.set_token(data["token"])
        self.store.set_user(data["user"])
        return data

    async def get_current_user(self) -> dict[str, Any]:
        response = await self._request("GET", "/auth/me")
        user = response.json()
        self.store.set_user(user)
        return user

    def logout(self) -> None:
        self.store.clear()

    async def request_forgot_password(self, email: str) -> dict[str, bool]:
        """Same answer whether or not the email is registered.

        Never raises on HTTP failure; ok is False instead.
        """
        try:
            response = await self._http.post(
                "/auth/forgot-password",
                json={"email": (email or "").strip().lower()},
            )
        except httpx.HTTPError:
            return {"ok": False}
        return {"ok": response.is_success}

    async def request_reset_password(
        self, token: str, new_password: str
    ) -> dict[str, bool]:
        """Never raises on HTTP failure; ok is False instead."""
        try:
            response = await self._http.post(
                "/auth/reset-password",
                json={"token": token, "newPassword": new_password},
            )
        except httpx.HTTPError:
            return {"ok": False}
        if not response.is_success:
            return {"ok": False}
        try:
            body = response.json()
        except ValueError:
            return {"ok": False}
        return {"ok": bool(body.get("ok"))}

    # ─── Users (admin) ──────────────────────────────────

    async def list_users(self, **filters: Any) -> list[dict[str, Any]]:
        params = {k: v for k, v in filters.items() if v is not None}
        if isinstance(params.get("isActive"), bool):
            params["isActive"] = "true" if params["isActive"] else "false"
        response = await self._request("GET", "/users", params=params)
        return response.json()

    async def create_user(self, **fields: Any) -> dict[str, Any]:
        response = await self._request("POST", "/users", json=fields)
        return response.json()

    async def update_user(self, user_id: str, **fields: Any) -> dict[str, Any]:
        response = await self._request("PUT", f"/users/{user_id}", json=fields)
        return response.json()

    async def reset_user_password(self, user_id: str) -> str:
        response = await self._request("PATCH", f"/users/{user_id}/reset-password")
        return response.json()["generatedPassword"]

    async def delete_user(self, user_id: str) -> None:
        await self._request("DELETE", f"/users/{user_id}")
