from datetime import date

from pydantic import BaseModel


class AuthUser(BaseModel):
    id: str
    email: str | None = None
    access_token: str


class LoginIn(BaseModel):
    email: str = ""
    password: str = ""
    next: str | None = None


class LoginOut(BaseModel):
    access_token: str
    refresh_token: str | None = None
    user_id: str
    is_admin: bool
    redirect_to: str


class MeOut(BaseModel):
    id: str
    email: str | None = None
    is_admin: bool
    home: str


# ---------- Provisioning ----------
class CreateUserAndEvent(BaseModel):
    email: str = ""
    password: str = ""
    full_name: str | None = None
    event_name: str = ""
    start_date: date | None = None
    end_date: date | None = None


class CreateUserAndEventOut(BaseModel):
    ok: bool
    user_id: str
    event_id: str
