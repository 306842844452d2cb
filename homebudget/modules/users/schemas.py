from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List
from datetime import datetime
from enum import Enum


class LanguageEnum(str, Enum):
    EN = "en"
    ES = "es"


class HouseholdRoleEnum(str, Enum):
    OWNER = "OWNER"
    ADMIN = "ADMIN"
    MEMBER = "MEMBER"


# ============ Registration & Auth ============

class UserRegistrationRequest(BaseModel):
    """New account request"""
    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8)


class UserRegistrationResponse(BaseModel):
    id: str
    name: str
    email: str
    household_id: str


class UserLoginRequest(BaseModel):
    email: EmailStr
    password: str


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


# ============ Profile ============

class UserBrief(BaseModel):
    id: str
    name: str
    email: str

    class Config:
        from_attributes = True


class MembershipHousehold(BaseModel):
    id: str
    name: str

    class Config:
        from_attributes = True


class UserMembership(BaseModel):
    household: MembershipHousehold
    role: HouseholdRoleEnum
    order: int

    class Config:
        from_attributes = True


class UserProfileResponse(BaseModel):
    id: str
    name: str
    email: str
    language: LanguageEnum
    created_at: datetime
    households: List[UserMembership] = []


class UserProfileUpdate(BaseModel):
    """Profile changes; a new password requires the current one"""
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    email: Optional[EmailStr] = None
    current_password: Optional[str] = None
    new_password: Optional[str] = Field(None, min_length=8)


class UserProfileUpdateResponse(BaseModel):
    message: str
    user: UserBrief


class LanguageUpdate(BaseModel):
    language: LanguageEnum


class LanguageResponse(BaseModel):
    language: LanguageEnum
