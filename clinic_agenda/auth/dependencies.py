from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from clinic_agenda.auth import jwt_handler
from clinic_agenda.database import SessionLocal
from clinic_agenda.models.user import User

security = HTTPBearer()


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> User:
    token = credentials.credentials
    try:
        payload = jwt_handler.decode_access_token(token)
    except Exception as exc:
        raise HTTPException(status_code=401, detail="Invalid token") from exc

    email = payload.get("sub")
    if not email:
        raise HTTPException(status_code=401, detail="Invalid token subject")

    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == email).first()
    finally:
        db.close()
    if user is None:
        raise HTTPException(status_code=401, detail="User not found")

    token_clinic = payload.get("clinic_id")
    if token_clinic is not None and token_clinic != user.clinic_id:
        raise HTTPException(status_code=403, detail="Token clinic does not match user clinic")
    return user


def get_current_clinic_id(current_user: User = Depends(get_current_user)) -> str:
    return current_user.clinic_id
