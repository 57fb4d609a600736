import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from src.models import User, Role, UserHasRole
from src.auth.schemas import AppUser, UserProfile
from src.auth.utils import verify_password

logger = logging.getLogger(__name__)

class UserService:
    @staticmethod
    def get_user_by_email(db: Session, email: str) -> Optional[User]:
        """Get user by email"""
        return db.query(User).filter(User.email == email).first()

    @staticmethod
    def get_user_by_id(db: Session, user_id: str) -> Optional[User]:
        """Get user by ID"""
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def get_user_roles(db: Session, user_id: str) -> List[str]:
        """Get user's role names"""
        rows = (
            db.query(Role.name)
            .join(UserHasRole, UserHasRole.role_id == Role.id)
            .filter(UserHasRole.user_id == user_id)
            .all()
        )
        return [name for (name,) in rows]

    @staticmethod
    def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
        """Authenticate user with email and password"""
        user = UserService.get_user_by_email(db, email)
        if not user or not verify_password(password, user.password):
            return None
        if user.is_active is False:
            logger.info("login refused for inactive user %s", user.id)
            return None

        user.last_login = datetime.now(timezone.utc)
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def to_app_user(db: Session, user: User) -> AppUser:
        """Normalize a stored user into the requester shape used by access checks"""
        return AppUser(
            id=user.id,
            roles=frozenset(UserService.get_user_roles(db, user.id)),
            is_active=user.is_active,
        )

    @staticmethod
    def to_profile(db: Session, user: User) -> UserProfile:
        return UserProfile(
            id=user.id,
            name=user.name,
            email=user.email,
            phone=user.phone,
            is_active=user.is_active,
            roles=UserService.get_user_roles(db, user.id),
            last_login=user.last_login,
            created_at=user.created_at,
        )
