from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from planner.core.security import get_backend, get_current_user
from planner.database.db import get_db
from planner.models.apartments import Apartment
from planner.schemas.auth import AuthUser
from planner.services.backend import BackendError, SupabaseClient
from planner.services.photos import list_apartment_photos

router = APIRouter(prefix="/apartments", tags=["apartments"])


@router.get("/{apartment_id}/photos", response_model=list[str])
def apartment_photos(
    apartment_id: str,
    refresh: bool = False,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    backend: SupabaseClient = Depends(get_backend),
):
    if not db.get(Apartment, apartment_id):
        raise HTTPException(status_code=404, detail="Apartment not found")
    try:
        return list_apartment_photos(backend, apartment_id, refresh=refresh)
    except BackendError as e:
        raise HTTPException(status_code=502, detail=str(e))
