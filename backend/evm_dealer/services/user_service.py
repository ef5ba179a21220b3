"""
User accounts and authentication
"""

from typing import List, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from evm_dealer.core.logging_config import get_logger
from evm_dealer.core.security import get_password_hash, verify_password
from evm_dealer.models import Brand, Dealer, Role, User
from evm_dealer.schemas.user import UserCreate, UserUpdate
from evm_dealer.services.common import get_or_404, like, list_where, paginate

logger = get_logger(__name__)

SORT_OPTIONS = {
    "username_asc": User.username.asc(),
    "username_desc": User.username.desc(),
    "name_asc": User.full_name.asc(),
    "name_desc": User.full_name.desc(),
    "date_asc": User.date_joined.asc(),
    "date_desc": User.date_joined.desc(),
}


async def authenticate(db: AsyncSession, username: str, password: str) -> User:
    result = await db.execute(select(User).where(User.username == username))
    user = result.scalars().first()
    if not user or not verify_password(password, user.password_hash):
        logger.warning(f"Failed login for '{username}'")
        raise HTTPException(status_code=401, detail="Invalid username or password")
    if not user.is_active:
        raise HTTPException(status_code=401, detail="Account is disabled")
    return user


async def get_role_by_name(db: AsyncSession, role_name: str) -> Role:
    result = await db.execute(select(Role).where(Role.role_name == role_name.upper()))
    role = result.scalars().first()
    if not role:
        raise HTTPException(status_code=400, detail=f"Invalid role: {role_name}")
    return role


async def list_roles(db: AsyncSession) -> List[Role]:
    return await list_where(db, Role, order_by=[Role.id])


async def get_by_username(db: AsyncSession, username: str) -> User:
    result = await db.execute(select(User).where(User.username == username))
    user = result.scalars().first()
    if not user:
        raise HTTPException(status_code=404, detail=f"User not found with username: {username}")
    return user


async def _check_unique(db: AsyncSession, username: Optional[str], email: Optional[str],
                        exclude_id: Optional[int] = None) -> None:
    if username:
        query = select(User.id).where(User.username == username)
        if exclude_id:
            query = query.where(User.id != exclude_id)
        if (await db.execute(query)).first():
            raise HTTPException(status_code=400, detail=f"Username already exists: {username}")
    if email:
        query = select(User.id).where(User.email == email)
        if exclude_id:
            query = query.where(User.id != exclude_id)
        if (await db.execute(query)).first():
            raise HTTPException(status_code=400, detail=f"Email already exists: {email}")


async def _check_org(db: AsyncSession, brand_id: Optional[int], dealer_id: Optional[int]) -> None:
    if brand_id is not None:
        await get_or_404(db, Brand, brand_id)
    if dealer_id is not None:
        await get_or_404(db, Dealer, dealer_id)


async def create_user(db: AsyncSession, data: UserCreate) -> User:
    await _check_unique(db, data.username, data.email)
    role = await get_role_by_name(db, data.role_name)
    await _check_org(db, data.brand_id, data.dealer_id)

    user = User(
        username=data.username,
        password_hash=get_password_hash(data.password),
        full_name=data.full_name,
        email=data.email,
        phone_number=data.phone_number,
        is_active=data.is_active,
        role_id=role.id,
        brand_id=data.brand_id,
        dealer_id=data.dealer_id,
    )
    db.add(user)
    await db.commit()
    logger.info(f"Created user {user.username} with role {role.role_name}")
    return await get_or_404(db, User, user.id)


async def update_user(db: AsyncSession, user_id: int, data: UserUpdate) -> User:
    user = await get_or_404(db, User, user_id)
    update_data = data.model_dump(exclude_unset=True)

    if "email" in update_data:
        await _check_unique(db, None, update_data["email"], exclude_id=user_id)
    role_name = update_data.pop("role_name", None)
    if role_name:
        role = await get_role_by_name(db, role_name)
        user.role_id = role.id
    await _check_org(db, update_data.get("brand_id"), update_data.get("dealer_id"))

    for field, value in update_data.items():
        setattr(user, field, value)

    await db.commit()
    return await get_or_404(db, User, user_id)


async def deactivate_user(db: AsyncSession, user_id: int) -> User:
    user = await get_or_404(db, User, user_id)
    if not user.is_active:
        raise HTTPException(status_code=400, detail="User is already inactive")
    user.is_active = False
    await db.commit()
    logger.info(f"Deactivated user {user.username}")
    return user


async def activate_user(db: AsyncSession, user_id: int) -> User:
    user = await get_or_404(db, User, user_id)
    if user.is_active:
        raise HTTPException(status_code=400, detail="User is already active")
    user.is_active = True
    await db.commit()
    logger.info(f"Activated user {user.username}")
    return user


async def delete_user(db: AsyncSession, user_id: int) -> None:
    """Soft delete: accounts are referenced by orders and tickets, so they are only disabled"""
    user = await get_or_404(db, User, user_id)
    user.is_active = False
    await db.commit()
    logger.info(f"Soft deleted user {user.username}")


async def reset_password(db: AsyncSession, user_id: int, new_password: str) -> None:
    if not new_password or len(new_password) < 6:
        raise HTTPException(status_code=400, detail="Password must be at least 6 characters")
    user = await get_or_404(db, User, user_id)
    user.password_hash = get_password_hash(new_password)
    await db.commit()
    logger.info(f"Password reset for {user.username}")


async def change_password(db: AsyncSession, user: User, old_password: str, new_password: str) -> None:
    if not verify_password(old_password, user.password_hash):
        raise HTTPException(status_code=400, detail="Current password is incorrect")
    user.password_hash = get_password_hash(new_password)
    await db.commit()


async def search_users(
    db: AsyncSession,
    page: int,
    size: int,
    keyword: Optional[str] = None,
    role_name: Optional[str] = None,
    role_id: Optional[int] = None,
    brand_id: Optional[int] = None,
    dealer_id: Optional[int] = None,
    is_active: Optional[bool] = None,
    sort_by: Optional[str] = None
) -> Tuple[List[User], int]:
    conditions = []
    joins = []
    if keyword:
        conditions.append(or_(
            User.username.ilike(like(keyword)),
            User.full_name.ilike(like(keyword)),
            User.email.ilike(like(keyword)),
        ))
    if role_name:
        joins.append(User.role)
        conditions.append(Role.role_name == role_name.upper())
    if role_id is not None:
        conditions.append(User.role_id == role_id)
    if brand_id is not None:
        conditions.append(User.brand_id == brand_id)
    if dealer_id is not None:
        conditions.append(User.dealer_id == dealer_id)
    if is_active is not None:
        conditions.append(User.is_active == is_active)

    order = SORT_OPTIONS.get(sort_by or "", User.id.asc())
    return await paginate(db, User, conditions, [order], page, size, joins=joins)
