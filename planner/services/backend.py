"""
Thin HTTP client for the hosted backend (Supabase).

Only the pieces the planner cannot do through its own database connection go
through here: password sign-in, token validation, admin user management, the
photo storage bucket and the admin status procedure.
"""
import logging
from urllib.parse import quote

import requests

from planner.core.config import get_backend_settings

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10


class BackendError(Exception):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class BackendConfigError(BackendError):
    pass


def _error_message(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or f"Backend request failed ({response.status_code})"
    if isinstance(payload, dict):
        for key in ("msg", "message", "error_description", "error"):
            if payload.get(key):
                return str(payload[key])
    return f"Backend request failed ({response.status_code})"


class SupabaseClient:
    def __init__(
        self,
        url: str,
        anon_key: str,
        service_key: str = "",
        *,
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ):
        self.url = url.rstrip("/")
        self.anon_key = anon_key
        self.service_key = service_key
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_env(cls) -> "SupabaseClient":
        settings = get_backend_settings()
        if not settings["url"] or not settings["anon_key"] or not settings["service_key"]:
            raise BackendConfigError("Missing env vars", status_code=500)
        return cls(settings["url"], settings["anon_key"], settings["service_key"])

    def _headers(self, key: str, token: str | None = None) -> dict:
        return {
            "apikey": key,
            "Authorization": f"Bearer {token or key}",
            "Content-Type": "application/json",
        }

    def _request(self, method: str, path: str, *, key: str, token: str | None = None, **kwargs):
        url = f"{self.url}{path}"
        try:
            response = self.session.request(
                method, url, headers=self._headers(key, token), timeout=self.timeout, **kwargs
            )
        except requests.RequestException as e:
            logger.error("Backend request %s %s failed: %s", method, path, e)
            raise BackendError(f"Backend unreachable: {e}") from e

        if not response.ok:
            message = _error_message(response)
            logger.warning("Backend %s %s -> %s: %s", method, path, response.status_code, message)
            raise BackendError(message, status_code=response.status_code)

        if not response.content:
            return None
        return response.json()

    # ---------- auth ----------
    def sign_in_with_password(self, email: str, password: str) -> dict:
        return self._request(
            "POST",
            "/auth/v1/token?grant_type=password",
            key=self.anon_key,
            json={"email": email, "password": password},
        )

    def get_user(self, token: str) -> dict:
        """Validate an access token and return the user it belongs to."""
        user = self._request("GET", "/auth/v1/user", key=self.anon_key, token=token)
        if not user or not user.get("id"):
            raise BackendError("Invalid token", status_code=401)
        return user

    def admin_create_user(
        self,
        email: str,
        password: str,
        *,
        email_confirm: bool = True,
        user_metadata: dict | None = None,
    ) -> dict:
        user = self._request(
            "POST",
            "/auth/v1/admin/users",
            key=self.service_key,
            json={
                "email": email,
                "password": password,
                "email_confirm": email_confirm,
                "user_metadata": user_metadata or {},
            },
        )
        if not user or not user.get("id"):
            raise BackendError("Create user failed")
        return user

    def admin_delete_user(self, user_id: str) -> None:
        self._request("DELETE", f"/auth/v1/admin/users/{user_id}", key=self.service_key)

    # ---------- procedures ----------
    def rpc(self, function: str, params: dict, *, token: str):
        """Call a database procedure as the given user, so its own checks apply."""
        return self._request(
            "POST", f"/rest/v1/rpc/{function}", key=self.anon_key, token=token, json=params
        )

    # ---------- storage ----------
    def list_objects(self, bucket: str, prefix: str, *, limit: int = 100) -> list[dict]:
        objects = self._request(
            "POST",
            f"/storage/v1/object/list/{bucket}",
            key=self.service_key,
            json={
                "prefix": prefix,
                "limit": limit,
                "offset": 0,
                "sortBy": {"column": "name", "order": "asc"},
            },
        )
        return objects or []

    def public_url(self, bucket: str, path: str) -> str:
        return f"{self.url}/storage/v1/object/public/{bucket}/{quote(path)}"
