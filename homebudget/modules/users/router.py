from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from redis import asyncio as aioredis
from typing import List

from homebudget.core.database import get_db, get_redis
from homebudget.core.dependencies import RequestContext, get_request_context
from homebudget.modules.users import schemas
from homebudget.modules.users.services import UserService

router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.post("/register", response_model=schemas.UserRegistrationResponse, status_code=status.HTTP_201_CREATED)
async def register_user(
    user_data: schemas.UserRegistrationRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Register a new user.

    - Checks email uniqueness
    - Creates a default household with the new user as owner
    """
    return await UserService.register_user(db, user_data)


@router.post("/login", response_model=schemas.TokenResponse)
async def login(
    login_data: schemas.UserLoginRequest,
    db: AsyncSession = Depends(get_db)
):
    """Login with email and password, returns JWT access and refresh tokens"""
    user = await UserService.authenticate_user(db, login_data.email, login_data.password)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password"
        )

    return UserService.create_tokens(user.id)


@router.post("/refresh", response_model=schemas.TokenResponse)
async def refresh_tokens(
    data: schemas.RefreshTokenRequest,
    db: AsyncSession = Depends(get_db)
):
    """Issue a new token pair from a refresh token"""
    return await UserService.refresh_tokens(db, data.refresh_token)


@router.post("/logout", status_code=status.HTTP_200_OK)
async def logout(
    ctx: RequestContext = Depends(get_request_context),
    redis: aioredis.Redis = Depends(get_redis)
):
    """Logout current user by revoking the access token"""
    await UserService.logout(redis, ctx)
    return {"message": "Successfully logged out"}


@router.get("/me", response_model=schemas.UserProfileResponse)
async def get_profile(
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context)
):
    """Get current user profile with household memberships"""
    return await UserService.get_profile(db, ctx.user)


@router.patch("/me", response_model=schemas.UserProfileUpdateResponse)
async def update_profile(
    data: schemas.UserProfileUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context)
):
    """
    Update user profile.

    - Email must not be used by another account
    - Changing the password requires the current password
    """
    user = await UserService.update_profile(db, ctx.user, data)
    return {"message": "Profile updated successfully", "user": user}


@router.get("/search", response_model=List[schemas.UserBrief])
async def search_users(
    email: str = Query(..., min_length=3, description="Part of the email address"),
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context)
):
    """Search other users by email, used when adding household members"""
    return await UserService.search_users(db, ctx.user_id, email)


@router.put("/language", response_model=schemas.LanguageResponse)
async def set_language(
    data: schemas.LanguageUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context)
):
    """Set preferred interface language (en or es)"""
    user = await UserService.set_language(db, ctx.user, data.language)
    return {"language": user.language}
