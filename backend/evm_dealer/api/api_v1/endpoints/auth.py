"""Authentication API: login and admin sign-up"""

from typing import Any
from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from evm_dealer.core.deps import get_db, get_current_user, require_roles
from evm_dealer.core.logging_config import get_logger
from evm_dealer.core.security import create_access_token
from evm_dealer.models.user import User
from evm_dealer.schemas.user import LoginRequest, TokenResponse, UserCreate, UserResponse
from evm_dealer.services import user_service
from evm_dealer.api.api_v1.endpoints.users import build_user_response

router = APIRouter()
logger = get_logger(__name__)


async def _issue_token(db: AsyncSession, username: str, password: str) -> TokenResponse:
    user = await user_service.authenticate(db, username, password)
    token = create_access_token(user.username, role=user.role_name)
    logger.info(f"User {user.username} logged in")
    return TokenResponse(access_token=token, user=build_user_response(user))


@router.post("/login", response_model=TokenResponse)
async def login(*, db: AsyncSession = Depends(get_db), credentials: LoginRequest) -> Any:
    """Exchange username/password for a bearer token"""
    return await _issue_token(db, credentials.username, credentials.password)


@router.post("/login/form", response_model=TokenResponse)
async def login_form(
    db: AsyncSession = Depends(get_db),
    form_data: OAuth2PasswordRequestForm = Depends()
) -> Any:
    """OAuth2 password flow (used by the interactive docs)"""
    return await _issue_token(db, form_data.username, form_data.password)


@router.post("/sign-up", response_model=UserResponse, status_code=201, dependencies=[Depends(require_roles())])
async def sign_up(*, db: AsyncSession = Depends(get_db), user_in: UserCreate) -> Any:
    """Register an account (administrators only)"""
    return build_user_response(await user_service.create_user(db, user_in))


@router.get("/me", response_model=UserResponse)
async def me(current_user: User = Depends(get_current_user)) -> Any:
    return build_user_response(current_user)
