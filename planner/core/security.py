"""
Request authentication.

Access tokens are issued and validated by the hosted backend; this module only
finds the token on the request, asks the backend who it belongs to and checks
the caller's profile for admin rights and event access.
"""
import base64
import json
import logging
import re

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.orm import Session

from planner.database.db import get_db
from planner.models.events import Event
from planner.schemas.auth import AuthUser
from planner.services.backend import BackendConfigError, BackendError, SupabaseClient
from planner.services.events import can_access_event, is_admin

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "

# sb-<ref>-auth-token, or sb-<ref>-auth-token.<n> when the session is split
_SESSION_COOKIE = re.compile(r"^(sb-.+-auth-token)(?:\.(\d+))?$")


def get_backend() -> SupabaseClient:
    try:
        return SupabaseClient.from_env()
    except BackendConfigError as e:
        raise HTTPException(status_code=500, detail=str(e))


def _token_from_cookie(value: str) -> str | None:
    """Decode the backend's browser session cookie (``sb-<ref>-auth-token``)."""
    if value.startswith("base64-"):
        encoded = value[len("base64-"):]
        encoded += "=" * (-len(encoded) % 4)
        try:
            value = base64.urlsafe_b64decode(encoded).decode("utf-8")
        except ValueError:
            return None
    try:
        session = json.loads(value)
    except ValueError:
        # A bare token, never a cut-off session document
        if value.startswith(("{", "[")):
            return None
        return value or None
    if isinstance(session, list) and session:
        return session[0]
    if isinstance(session, dict):
        return session.get("access_token")
    return None


def _session_cookies(cookies: dict[str, str]) -> list[str]:
    """Session cookie values, with chunked cookies joined in index order."""
    chunks: dict[str, dict[int, str]] = {}
    for name, value in cookies.items():
        match = _SESSION_COOKIE.match(name)
        if not match:
            continue
        base, index = match.groups()
        chunks.setdefault(base, {})[int(index) if index is not None else -1] = value

    values = []
    for parts in chunks.values():
        if -1 in parts:
            values.append(parts[-1])
        numbered = sorted(i for i in parts if i >= 0)
        if numbered:
            values.append("".join(parts[i] for i in numbered))
    return values


def get_access_token(request: Request, authorization: str | None = Header(default=None)) -> str:
    if authorization and authorization.startswith(BEARER_PREFIX):
        token = authorization[len(BEARER_PREFIX):].strip()
        if token:
            return token

    for value in _session_cookies(request.cookies):
        token = _token_from_cookie(value)
        if token:
            return token

    raise HTTPException(status_code=401, detail="Missing Authorization Bearer token")


def get_current_user(
    token: str = Depends(get_access_token),
    backend: SupabaseClient = Depends(get_backend),
) -> AuthUser:
    try:
        user = backend.get_user(token)
    except BackendError as e:
        logger.info("Rejected token: %s", e)
        raise HTTPException(status_code=401, detail="Invalid token")
    return AuthUser(id=user["id"], email=user.get("email"), access_token=token)


def require_admin(user: AuthUser = Depends(get_current_user), db: Session = Depends(get_db)) -> AuthUser:
    if not is_admin(db, user.id):
        raise HTTPException(status_code=403, detail="Not allowed")
    return user


def get_event_for_user(
    event_id: str,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Event:
    """The event from the path, if the caller may see it; 404 otherwise."""
    event = db.get(Event, event_id)
    if not event or not can_access_event(db, event, user.id):
        raise HTTPException(status_code=404, detail="Event not found")
    return event
