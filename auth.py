from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer
from sqlalchemy.orm import Session

from database import get_db
from models import User
from services.auth_service import auth_service
from security import verify_token

security = HTTPBearer()

async def get_current_user(
    token: str = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Não autenticado",
        headers={"WWW-Authenticate": "Bearer"},
    )

    user_id = verify_token(token.credentials)
    if user_id is None:
        raise credentials_exception

    user = auth_service.get_active_user(db, user_id)
    if user is None:
        raise credentials_exception

    return user
