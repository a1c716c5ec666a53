import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session
from fastapi import HTTPException, status

from models import User, Tenant
from schemas import LoginRequest
from security import get_password_hash, verify_password, create_access_token

logger = logging.getLogger(__name__)


class AuthService:
    def create_user(self, db: Session, tenant: Tenant, email: str, name: str, password: str) -> User:
        # Verificar se email já existe
        if db.query(User).filter(User.email == email.lower()).first():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Email já cadastrado"
            )

        db_user = User(
            tenant_id=tenant.id,
            email=email.lower(),
            name=name,
            password_hash=get_password_hash(password),
        )
        db.add(db_user)
        db.commit()
        db.refresh(db_user)

        return db_user

    def login(self, db: Session, login_data: LoginRequest):
        user = db.query(User).filter(
            User.email == login_data.email.lower(),
            User.is_active == True
        ).first()

        # Mesma mensagem para usuário inexistente e senha errada
        if not user or not verify_password(login_data.password, user.password_hash):
            logger.info("Falha de login para %s", login_data.email)
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Credenciais inválidas"
            )

        user.last_login_at = datetime.utcnow()
        db.commit()
        db.refresh(user)

        access_token = create_access_token(data={"sub": user.id, "tenant": user.tenant_id})

        return {
            "access_token": access_token,
            "token_type": "bearer",
            "user": user,
            "tenant": user.tenant,
        }

    def get_active_user(self, db: Session, user_id: str) -> Optional[User]:
        return db.query(User).filter(
            User.id == user_id,
            User.is_active == True
        ).first()

    def session_info(self, user: User):
        return {"user": user, "tenant": user.tenant}

auth_service = AuthService()
