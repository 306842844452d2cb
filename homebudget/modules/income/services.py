from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_
from fastapi import HTTPException, status
from datetime import date
from dateutil.relativedelta import relativedelta
from typing import List, Optional, Tuple
import logging

from homebudget.modules.income.models import Income, IncomeCategory
from homebudget.modules.income.schemas import IncomeCreate, IncomeCategoryCreate

logger = logging.getLogger(__name__)


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """Half-open [first day, first day of next month) range"""
    start = date(year, month, 1)
    return start, start + relativedelta(months=1)


class IncomeService:
    """Service for household income and income categories"""

    @staticmethod
    async def get_income(
        db: AsyncSession,
        household_id: str,
        year: Optional[int] = None,
        month: Optional[int] = None
    ) -> List[Income]:
        """Income entries of a household, optionally limited to one month"""
        query = select(Income).where(Income.household_id == household_id)
        if year is not None and month is not None:
            start, end = month_bounds(year, month)
            query = query.where(and_(Income.date >= start, Income.date < end))
        query = query.order_by(Income.date.desc())
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def create_income(db: AsyncSession, data: IncomeCreate) -> Income:
        """Record income; the category must belong to the same household"""
        if data.income_category_id is not None:
            category = await IncomeService.get_category(db, data.income_category_id)
            if not category or category.household_id != data.household_id:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Invalid income category"
                )

        income = Income(
            household_id=data.household_id,
            income_category_id=data.income_category_id,
            description=data.description,
            amount=data.amount,
            date=data.date
        )
        db.add(income)
        await db.commit()
        await db.refresh(income)
        logger.info(f"Income {income.id} recorded for household {data.household_id}")
        return income

    @staticmethod
    async def get_category(db: AsyncSession, category_id: str) -> Optional[IncomeCategory]:
        result = await db.execute(select(IncomeCategory).where(IncomeCategory.id == category_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_categories(db: AsyncSession, household_id: str) -> List[IncomeCategory]:
        query = (
            select(IncomeCategory)
            .where(IncomeCategory.household_id == household_id)
            .order_by(IncomeCategory.name)
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def create_category(db: AsyncSession, data: IncomeCategoryCreate) -> IncomeCategory:
        category = IncomeCategory(household_id=data.household_id, name=data.name)
        db.add(category)
        await db.commit()
        await db.refresh(category)
        return category
