from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from src.auth.roles import Role, has_role
from src.auth.schemas import AppUser
from src.auth.service import UserService
from src.auth.utils import verify_token
from src.config import settings
from src.database import get_db

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login", auto_error=False)

def _credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

def get_current_user(token: Optional[str] = Depends(oauth2_scheme), db: Session = Depends(get_db)):
    """Get current authenticated user"""
    credentials_exception = _credentials_exception()
    if not token:
        raise credentials_exception

    token_data = verify_token(token, credentials_exception)

    user = UserService.get_user_by_id(db, user_id=token_data.user_id)
    if user is None:
        raise credentials_exception

    return user

def get_optional_requester(
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db)
) -> Optional[AppUser]:
    """Requester for endpoints open to anonymous callers; a bad token still fails"""
    if not token:
        return None
    user = get_current_user(token=token, db=db)
    return UserService.to_app_user(db, user)

def require_role(min_role: Role):
    """Dependency factory rejecting requesters below min_role"""
    def _dependency(current_user = Depends(get_current_user), db: Session = Depends(get_db)) -> AppUser:
        app_user = UserService.to_app_user(db, current_user)
        if not has_role(app_user, min_role):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not enough permissions"
            )
        return app_user
    return _dependency
