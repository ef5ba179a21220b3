"""Dependency injection: database session, current user and role checks"""
from typing import AsyncGenerator, Callable

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from evm_dealer.core.config import settings
from evm_dealer.core.logging_config import get_logger
from evm_dealer.core.security import decode_access_token
from evm_dealer.db.session import SessionLocal
from evm_dealer.models.user import User

logger = get_logger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login/form")


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped database session
    """
    async with SessionLocal() as session:
        yield session


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db)
) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    username = decode_access_token(token)
    if not username:
        raise credentials_exception

    result = await db.execute(select(User).where(User.username == username))
    user = result.scalars().first()
    if user is None:
        raise credentials_exception
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Inactive user")
    return user


def require_roles(*roles: str) -> Callable:
    """
    Build a dependency that lets through users holding one of `roles`.
    ADMIN is always allowed.

    Usage:
        @router.post("/", dependencies=[Depends(require_roles(RoleType.BRAND_MANAGER))])
    """
    async def checker(current_user: User = Depends(get_current_user)) -> User:
        if not current_user.has_any_role(*roles):
            logger.warning(
                f"Access denied for {current_user.username} ({current_user.role_name}), "
                f"requires one of {roles}"
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You do not have permission to perform this action"
            )
        return current_user

    return checker
