"""
Authentication Service.
"""

import logging
from typing import Optional, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from receipt_splitter.core import security
from receipt_splitter.core.exceptions import (
    AuthError,
    ConflictError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from receipt_splitter.core.security import TokenService
from receipt_splitter.models.user import User

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


class AuthService:
    def get_user_by_email(self, db: Session, email: str) -> Optional[User]:
        """Get a user by email."""
        return db.query(User).filter(User.email == email).first()

    def get_user_by_id(self, db: Session, user_id: str) -> User:
        """Get a user by id or raise NotFoundError."""
        user = db.query(User).filter(User.id == user_id).first()
        if user is None:
            raise NotFoundError("User not found")
        return user

    def create_user(
        self,
        db: Session,
        name: str,
        email: str,
        password: str,
        monzo_id: Optional[str] = None,
    ) -> User:
        """Create a new user."""
        name = (name or "").strip()
        email = (email or "").strip()
        if not name or not email or not password:
            raise ValidationError("Name, email, and password are required")
        if security.password_too_long(password):
            raise ValidationError(
                f"Password must be at most {security.BCRYPT_MAX_BYTES} bytes"
            )

        if self.get_user_by_email(db, email):
            raise ConflictError("Email already exists")

        db_user = User(
            name=name,
            email=email,
            password=security.get_password_hash(password),
            monzo_id=monzo_id,
        )
        db.add(db_user)
        try:
            db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration
            db.rollback()
            raise ConflictError("Email already exists")
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to create user: {e}")
            raise InternalError("Failed to create user")
        db.refresh(db_user)
        logger.info(f"Registered user {db_user.id}")
        return db_user

    def authenticate_user(
        self, db: Session, tokens: TokenService, email: str, password: str
    ) -> Tuple[User, str]:
        """Authenticate a user by email and password and issue a token."""
        if not email or not password:
            raise ValidationError("Email and password are required")

        user = self.get_user_by_email(db, email.strip())
        if not user or not security.verify_password(password, user.password):
            raise AuthError(INVALID_CREDENTIALS)

        return user, tokens.issue(user.id)


auth_service = AuthService()
