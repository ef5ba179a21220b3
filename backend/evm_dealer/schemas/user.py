from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, EmailStr, Field

from evm_dealer.schemas.common import PageMeta


class RoleResponse(BaseModel):
    id: int
    role_name: str
    display_name: Optional[str] = None
    role_type: Optional[str] = None
    description: Optional[str] = None

    class Config:
        from_attributes = True


class UserBase(BaseModel):
    full_name: Optional[str] = Field(None, max_length=100)
    email: Optional[EmailStr] = None
    phone_number: Optional[str] = Field(None, max_length=20)
    brand_id: Optional[int] = None
    dealer_id: Optional[int] = None


class UserCreate(UserBase):
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=6, max_length=100)
    role_name: str = Field(..., description="Role code, e.g. DEALER_STAFF")
    is_active: bool = True


class UserUpdate(BaseModel):
    full_name: Optional[str] = Field(None, max_length=100)
    email: Optional[EmailStr] = None
    phone_number: Optional[str] = Field(None, max_length=20)
    role_name: Optional[str] = None
    brand_id: Optional[int] = None
    dealer_id: Optional[int] = None
    is_active: Optional[bool] = None


class PasswordReset(BaseModel):
    new_password: str = Field(..., max_length=100, description="At least 6 characters")


class PasswordChange(BaseModel):
    old_password: str
    new_password: str = Field(..., min_length=6, max_length=100)


class UserResponse(BaseModel):
    id: int
    username: str
    full_name: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None
    is_active: bool
    date_joined: datetime

    role_id: Optional[int] = None
    role_name: Optional[str] = None
    role_display_name: Optional[str] = None
    brand_id: Optional[int] = None
    brand_name: Optional[str] = None
    dealer_id: Optional[int] = None
    dealer_name: Optional[str] = None


class UserListResponse(PageMeta):
    data: List[UserResponse]


class LoginRequest(BaseModel):
    username: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse
