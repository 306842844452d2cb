from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.orm import selectinload
from sqlalchemy.exc import IntegrityError
from fastapi import HTTPException, status
from redis import asyncio as aioredis
from typing import Optional, List
import logging

from homebudget.core.security import (
    get_password_hash,
    verify_password,
    create_access_token,
    create_refresh_token,
    decode_token,
    token_ttl_seconds
)
from homebudget.core.config import settings
from homebudget.core.dependencies import RequestContext, blacklist_key
from homebudget.modules.users.models import User, Language
from homebudget.modules.households.models import Household, HouseholdMember, HouseholdRole
from homebudget.modules.users import schemas

logger = logging.getLogger(__name__)


class UserService:
    """Service layer for user management operations"""

    @staticmethod
    async def register_user(db: AsyncSession, user_data: schemas.UserRegistrationRequest) -> dict:
        """Register a new user together with a default household"""

        # Check if email already exists
        result = await db.execute(select(User).where(User.email == user_data.email))
        if result.scalar_one_or_none():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="User with this email already exists"
            )

        user = User(
            name=user_data.name,
            email=user_data.email,
            hashed_password=get_password_hash(user_data.password)
        )
        household = Household(name=f"{user_data.name}'s Household")

        try:
            db.add(user)
            db.add(household)
            await db.flush()

            db.add(HouseholdMember(
                household_id=household.id,
                user_id=user.id,
                role=HouseholdRole.OWNER,
                order=0
            ))
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="User registration failed. Please try again."
            )

        logger.info(f"Registered user {user.id} with household {household.id}")
        return {
            "id": user.id,
            "name": user.name,
            "email": user.email,
            "household_id": household.id
        }

    @staticmethod
    async def authenticate_user(db: AsyncSession, email: str, password: str) -> Optional[User]:
        """Authenticate user with email and password"""
        result = await db.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()

        if not user:
            return None

        if not verify_password(password, user.hashed_password):
            return None

        return user

    @staticmethod
    def create_tokens(user_id: str) -> dict:
        """Create access and refresh tokens"""
        access_token = create_access_token(data={"sub": str(user_id)})
        refresh_token = create_refresh_token(data={"sub": str(user_id)})

        return {
            "access_token": access_token,
            "refresh_token": refresh_token,
            "token_type": "bearer",
            "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
        }

    @staticmethod
    async def refresh_tokens(db: AsyncSession, refresh_token: str) -> dict:
        """Exchange a refresh token for a new token pair"""
        payload = decode_token(refresh_token)
        if payload.get("type") != "refresh" or payload.get("sub") is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid refresh token"
            )

        result = await db.execute(select(User).where(User.id == str(payload["sub"])))
        user = result.scalar_one_or_none()
        if not user:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid refresh token"
            )

        return UserService.create_tokens(user.id)

    @staticmethod
    async def logout(redis: aioredis.Redis, context: RequestContext) -> None:
        """Revoke the current access token until it would have expired"""
        ttl = token_ttl_seconds(context.token_payload)
        await redis.set(blacklist_key(context.token), "1", ex=ttl)
        logger.info(f"User {context.user_id} logged out")

    @staticmethod
    async def get_profile(db: AsyncSession, user: User) -> dict:
        """Current user with the households they belong to"""
        result = await db.execute(
            select(HouseholdMember)
            .where(HouseholdMember.user_id == user.id)
            .options(selectinload(HouseholdMember.household))
            .order_by(HouseholdMember.order)
        )
        memberships = list(result.scalars().all())

        return {
            "id": user.id,
            "name": user.name,
            "email": user.email,
            "language": user.language,
            "created_at": user.created_at,
            "households": memberships
        }

    @staticmethod
    async def update_profile(db: AsyncSession, user: User, data: schemas.UserProfileUpdate) -> User:
        """Update name, email and/or password"""
        updates = {}

        if data.name:
            updates["name"] = data.name

        if data.email and data.email != user.email:
            result = await db.execute(select(User).where(User.email == data.email))
            if result.scalar_one_or_none():
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Email already in use"
                )
            updates["email"] = data.email

        if data.new_password:
            if not data.current_password:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Current password is required to set a new password"
                )
            if not verify_password(data.current_password, user.hashed_password):
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Current password is incorrect"
                )
            updates["hashed_password"] = get_password_hash(data.new_password)

        if not updates:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No changes to update"
            )

        for field, value in updates.items():
            setattr(user, field, value)

        await db.commit()
        await db.refresh(user)
        return user

    @staticmethod
    async def search_users(db: AsyncSession, user_id: str, email: str) -> List[User]:
        """Find other users whose email contains the given text"""
        query = (
            select(User)
            .where(func.lower(User.email).contains(email.lower(), autoescape=True))
            .where(User.id != user_id)
            .order_by(User.email)
            .limit(settings.USER_SEARCH_LIMIT)
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def set_language(db: AsyncSession, user: User, language: schemas.LanguageEnum) -> User:
        """Persist the preferred interface language"""
        user.language = Language(language.value)
        await db.commit()
        await db.refresh(user)
        return user
