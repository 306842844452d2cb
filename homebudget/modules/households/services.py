from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, and_
from fastapi import HTTPException, status
from typing import List, Optional, Iterable
import logging

from homebudget.modules.households.models import Household, HouseholdMember, HouseholdRole, MANAGER_ROLES
from homebudget.modules.households.schemas import HouseholdCreate, HouseholdUpdate, HouseholdOrder
from homebudget.modules.users.models import User
from homebudget.modules.budgets.models import Budget, Category, ExpenseItem
from homebudget.modules.expenses.models import Expense
from homebudget.modules.income.models import Income, IncomeCategory

logger = logging.getLogger(__name__)


class HouseholdService:
    """Service for households and their memberships"""

    @staticmethod
    async def get_membership(
        db: AsyncSession,
        household_id: str,
        user_id: str,
        roles: Optional[Iterable[HouseholdRole]] = None
    ) -> Optional[HouseholdMember]:
        """Membership row for (user, household), optionally restricted to roles"""
        query = select(HouseholdMember).where(
            and_(HouseholdMember.household_id == household_id, HouseholdMember.user_id == user_id)
        )
        if roles is not None:
            query = query.where(HouseholdMember.role.in_(list(roles)))
        result = await db.execute(query)
        return result.scalar_one_or_none()

    @staticmethod
    async def is_member(db: AsyncSession, household_id: str, user_id: str) -> bool:
        membership = await HouseholdService.get_membership(db, household_id, user_id)
        return membership is not None

    @staticmethod
    async def require_member(db: AsyncSession, household_id: str, user_id: str) -> None:
        """Raise 403 unless the user belongs to the household"""
        if not await HouseholdService.is_member(db, household_id, user_id):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You do not have access to this household"
            )

    @staticmethod
    async def get_households(db: AsyncSession, user_id: str) -> List[Household]:
        """Households of the user, in the user's own order"""
        query = (
            select(Household)
            .join(HouseholdMember, HouseholdMember.household_id == Household.id)
            .where(HouseholdMember.user_id == user_id)
            .order_by(HouseholdMember.order, Household.created_at)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def get_household(db: AsyncSession, household_id: str, user_id: str) -> Optional[Household]:
        """Get household if the user is a member"""
        query = (
            select(Household)
            .join(HouseholdMember, HouseholdMember.household_id == Household.id)
            .where(and_(Household.id == household_id, HouseholdMember.user_id == user_id))
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()

    @staticmethod
    async def create_household(db: AsyncSession, user_id: str, data: HouseholdCreate) -> Household:
        """Create a household owned by the user"""
        household = Household(name=data.name)
        db.add(household)
        await db.flush()

        db.add(HouseholdMember(
            household_id=household.id,
            user_id=user_id,
            role=HouseholdRole.OWNER,
            order=0
        ))
        await db.commit()

        logger.info(f"Household {household.id} created by user {user_id}")
        return await HouseholdService.get_household(db, household.id, user_id)

    @staticmethod
    async def _get_owned_household(db: AsyncSession, household_id: str, user_id: str) -> Optional[Household]:
        membership = await HouseholdService.get_membership(
            db, household_id, user_id, roles=[HouseholdRole.OWNER]
        )
        if membership is None:
            return None
        result = await db.execute(select(Household).where(Household.id == household_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def update_household(
        db: AsyncSession, household_id: str, user_id: str, data: HouseholdUpdate
    ) -> Optional[Household]:
        """Rename household (owner only)"""
        household = await HouseholdService._get_owned_household(db, household_id, user_id)
        if not household:
            return None

        update_data = data.model_dump(exclude_unset=True, exclude_none=True)
        for field, value in update_data.items():
            setattr(household, field, value)

        await db.commit()
        return await HouseholdService.get_household(db, household_id, user_id)

    @staticmethod
    async def delete_household(db: AsyncSession, household_id: str, user_id: str) -> bool:
        """Delete household and everything that belongs to it (owner only)"""
        household = await HouseholdService._get_owned_household(db, household_id, user_id)
        if not household:
            return False

        # Children first; no ON DELETE CASCADE is relied upon
        await db.execute(delete(Expense).where(Expense.household_id == household_id))
        await db.execute(delete(ExpenseItem).where(ExpenseItem.household_id == household_id))
        await db.execute(delete(Category).where(Category.household_id == household_id))
        await db.execute(delete(Budget).where(Budget.household_id == household_id))
        await db.execute(delete(Income).where(Income.household_id == household_id))
        await db.execute(delete(IncomeCategory).where(IncomeCategory.household_id == household_id))
        await db.execute(delete(HouseholdMember).where(HouseholdMember.household_id == household_id))
        await db.execute(delete(Household).where(Household.id == household_id))
        await db.commit()

        logger.info(f"Household {household_id} deleted by user {user_id}")
        return True

    @staticmethod
    async def add_member(db: AsyncSession, household_id: str, user_id: str, new_user_id: str) -> User:
        """Add an existing user as MEMBER (owner or admin only)"""
        manager = await HouseholdService.get_membership(db, household_id, user_id, roles=MANAGER_ROLES)
        if manager is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Household not found or you do not have permission"
            )

        result = await db.execute(select(User).where(User.id == new_user_id))
        new_user = result.scalar_one_or_none()
        if new_user is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

        if await HouseholdService.is_member(db, household_id, new_user_id):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="User already in household"
            )

        db.add(HouseholdMember(
            household_id=household_id,
            user_id=new_user_id,
            role=HouseholdRole.MEMBER
        ))
        await db.commit()

        logger.info(f"User {new_user_id} added to household {household_id} by {user_id}")
        return new_user

    @staticmethod
    async def update_orders(db: AsyncSession, user_id: str, orders: List[HouseholdOrder]) -> None:
        """Apply the user's household ordering; all entries or none"""
        try:
            for entry in orders:
                membership = await HouseholdService.get_membership(db, entry.household_id, user_id)
                if membership is None:
                    raise HTTPException(
                        status_code=status.HTTP_404_NOT_FOUND,
                        detail=f"Household {entry.household_id} not found"
                    )
                membership.order = entry.order
            await db.commit()
        except Exception:
            await db.rollback()
            raise
