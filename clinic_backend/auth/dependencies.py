from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from clinic_backend.auth import jwt_handler
from clinic_backend.database import get_db
from clinic_backend.models.user import User

security = HTTPBearer()

CALENDAR_EDITOR_ROLES = {"therapist", "admin"}


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    token = credentials.credentials
    try:
        payload = jwt_handler.decode_access_token(token)
    except Exception as exc:
        raise HTTPException(status_code=401, detail="Invalid token") from exc

    email = payload.get("sub")
    if not email:
        raise HTTPException(status_code=401, detail="Invalid token subject")

    user = db.query(User).filter(User.email == email).first()
    if user is None:
        raise HTTPException(status_code=401, detail="User not found")
    return user


def ensure_can_edit_calendar(user: User, therapist_id: str) -> None:
    if user.role not in CALENDAR_EDITOR_ROLES:
        raise HTTPException(status_code=403, detail="Only therapists and admins can change calendars.")
    if user.role == "therapist" and user.therapist_id != therapist_id:
        raise HTTPException(status_code=403, detail="Therapists can only change their own calendar.")
