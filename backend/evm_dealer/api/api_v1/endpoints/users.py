"""User management API"""

from typing import Any, List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from evm_dealer.core.deps import get_db, get_current_user, require_roles
from evm_dealer.core.permissions import USER_READ
from evm_dealer.models.user import User
from evm_dealer.schemas.common import MessageResponse
from evm_dealer.schemas.user import (
    UserCreate, UserUpdate, UserResponse, UserListResponse, RoleResponse,
    PasswordReset, PasswordChange
)
from evm_dealer.services import user_service
from evm_dealer.services.common import get_or_404, total_pages

router = APIRouter()

admin_only = require_roles()


def build_user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        username=user.username,
        full_name=user.full_name,
        email=user.email,
        phone_number=user.phone_number,
        is_active=user.is_active,
        date_joined=user.date_joined,
        role_id=user.role_id,
        role_name=user.role_name,
        role_display_name=user.role.display_name if user.role else None,
        brand_id=user.brand_id,
        brand_name=user.brand.brand_name if user.brand else None,
        dealer_id=user.dealer_id,
        dealer_name=user.dealer.dealer_name if user.dealer else None,
    )


def build_user_list(users: List[User], total: int, page: int, size: int) -> UserListResponse:
    return UserListResponse(
        data=[build_user_response(u) for u in users],
        total=total,
        page=page,
        size=size,
        total_pages=total_pages(total, size)
    )


@router.get("/", response_model=UserListResponse, dependencies=[Depends(require_roles(*USER_READ))])
async def list_users(
    *,
    db: AsyncSession = Depends(get_db),
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=100),
    keyword: Optional[str] = Query(None, description="Username, name or email"),
    role_name: Optional[str] = Query(None),
    role_id: Optional[int] = Query(None),
    brand_id: Optional[int] = Query(None),
    dealer_id: Optional[int] = Query(None),
    is_active: Optional[bool] = Query(None),
    sort_by: Optional[str] = Query(None)
) -> Any:
    """Filtered user list"""
    users, total = await user_service.search_users(
        db, page, size, keyword=keyword, role_name=role_name, role_id=role_id,
        brand_id=brand_id, dealer_id=dealer_id, is_active=is_active, sort_by=sort_by
    )
    return build_user_list(users, total, page, size)


@router.get("/roles", response_model=List[RoleResponse])
async def list_roles(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
) -> Any:
    return await user_service.list_roles(db)


@router.get("/me", response_model=UserResponse)
async def read_me(current_user: User = Depends(get_current_user)) -> Any:
    return build_user_response(current_user)


@router.post("/me/change-password", response_model=MessageResponse)
async def change_my_password(
    *,
    db: AsyncSession = Depends(get_db),
    body: PasswordChange,
    current_user: User = Depends(get_current_user)
) -> Any:
    await user_service.change_password(db, current_user, body.old_password, body.new_password)
    return MessageResponse(message="Password changed")


@router.get("/role/{role_name}", response_model=UserListResponse, dependencies=[Depends(require_roles(*USER_READ))])
async def list_users_by_role(
    role_name: str,
    db: AsyncSession = Depends(get_db),
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=100)
) -> Any:
    users, total = await user_service.search_users(db, page, size, role_name=role_name)
    return build_user_list(users, total, page, size)


@router.get("/brand/{brand_id}", response_model=UserListResponse, dependencies=[Depends(require_roles(*USER_READ))])
async def list_users_by_brand(
    brand_id: int,
    db: AsyncSession = Depends(get_db),
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=100)
) -> Any:
    users, total = await user_service.search_users(db, page, size, brand_id=brand_id)
    return build_user_list(users, total, page, size)


@router.get("/dealer/{dealer_id}", response_model=UserListResponse, dependencies=[Depends(require_roles(*USER_READ))])
async def list_users_by_dealer(
    dealer_id: int,
    db: AsyncSession = Depends(get_db),
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=100)
) -> Any:
    users, total = await user_service.search_users(db, page, size, dealer_id=dealer_id)
    return build_user_list(users, total, page, size)


@router.get("/active", response_model=UserListResponse, dependencies=[Depends(require_roles(*USER_READ))])
async def list_active_users(
    db: AsyncSession = Depends(get_db),
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=100)
) -> Any:
    users, total = await user_service.search_users(db, page, size, is_active=True)
    return build_user_list(users, total, page, size)


@router.get("/inactive", response_model=UserListResponse, dependencies=[Depends(require_roles(*USER_READ))])
async def list_inactive_users(
    db: AsyncSession = Depends(get_db),
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=100)
) -> Any:
    users, total = await user_service.search_users(db, page, size, is_active=False)
    return build_user_list(users, total, page, size)


@router.get("/username/{username}", response_model=UserResponse, dependencies=[Depends(require_roles(*USER_READ))])
async def get_user_by_username(username: str, db: AsyncSession = Depends(get_db)) -> Any:
    return build_user_response(await user_service.get_by_username(db, username))


@router.get("/{user_id}", response_model=UserResponse, dependencies=[Depends(require_roles(*USER_READ))])
async def get_user(user_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    return build_user_response(await get_or_404(db, User, user_id, "User"))


@router.post("/", response_model=UserResponse, status_code=201, dependencies=[Depends(admin_only)])
async def create_user(*, db: AsyncSession = Depends(get_db), user_in: UserCreate) -> Any:
    return build_user_response(await user_service.create_user(db, user_in))


@router.put("/{user_id}", response_model=UserResponse, dependencies=[Depends(admin_only)])
async def update_user(*, db: AsyncSession = Depends(get_db), user_id: int, user_in: UserUpdate) -> Any:
    return build_user_response(await user_service.update_user(db, user_id, user_in))


@router.patch("/{user_id}/activate", response_model=UserResponse, dependencies=[Depends(admin_only)])
async def activate_user(user_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    return build_user_response(await user_service.activate_user(db, user_id))


@router.patch("/{user_id}/deactivate", response_model=UserResponse, dependencies=[Depends(admin_only)])
async def deactivate_user(user_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    return build_user_response(await user_service.deactivate_user(db, user_id))


@router.patch("/{user_id}/reset-password", response_model=MessageResponse, dependencies=[Depends(admin_only)])
async def reset_password(*, db: AsyncSession = Depends(get_db), user_id: int, body: PasswordReset) -> Any:
    await user_service.reset_password(db, user_id, body.new_password)
    return MessageResponse(message="Password reset")


@router.delete("/{user_id}", response_model=MessageResponse, dependencies=[Depends(admin_only)])
async def delete_user(user_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    """Disable the account"""
    await user_service.delete_user(db, user_id)
    return MessageResponse(message="User deleted")
