from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from planner.core.security import get_backend, get_current_user
from planner.database.db import get_db
from planner.schemas.auth import AuthUser, LoginIn, LoginOut, MeOut
from planner.services.backend import BackendError, SupabaseClient
from planner.services.events import home_path, is_admin

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=LoginOut)
def login(
    payload: LoginIn,
    db: Session = Depends(get_db),
    backend: SupabaseClient = Depends(get_backend),
):
    email = payload.email.strip().lower()
    if not email or not payload.password:
        raise HTTPException(status_code=400, detail="Enter email and password.")

    try:
        session = backend.sign_in_with_password(email, payload.password)
    except BackendError as e:
        raise HTTPException(status_code=401, detail=str(e))

    if not session or not session.get("access_token"):
        raise HTTPException(status_code=401, detail="Login failed (missing session).")

    user_id = session["user"]["id"]
    admin = is_admin(db, user_id)
    return {
        "access_token": session["access_token"],
        "refresh_token": session.get("refresh_token"),
        "user_id": user_id,
        "is_admin": admin,
        "redirect_to": home_path(admin, payload.next),
    }


@router.get("/me", response_model=MeOut)
def me(user: AuthUser = Depends(get_current_user), db: Session = Depends(get_db)):
    admin = is_admin(db, user.id)
    return {"id": user.id, "email": user.email, "is_admin": admin, "home": home_path(admin)}
