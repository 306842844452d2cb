from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_
from fastapi import HTTPException, status
from decimal import Decimal
from typing import List, Optional, Dict, Any
import logging

from homebudget.core.config import settings
from homebudget.modules.budgets.models import Budget, Currency
from homebudget.modules.budgets.schemas import BudgetCreate
from homebudget.modules.income.models import Income
from homebudget.modules.income.services import IncomeService

logger = logging.getLogger(__name__)


def summarize_budget(budget: Budget, total_income: Decimal = Decimal("0")) -> Dict[str, Any]:
    """Budgeted vs. spent per category and in total, over an already-loaded tree"""
    categories = []
    total_budgeted = Decimal("0")
    total_spent = Decimal("0")

    for category in budget.categories:
        budgeted = category.budgeted_amount
        spent = category.spent_amount
        total_budgeted += budgeted
        total_spent += spent
        categories.append({
            "category_id": category.id,
            "name": category.name,
            "budgeted": budgeted,
            "spent": spent,
            "remaining": budgeted - spent
        })

    return {
        "budget_id": budget.id,
        "currency": budget.currency,
        "total_budgeted": total_budgeted,
        "total_spent": total_spent,
        "remaining": total_budgeted - total_spent,
        "total_income": total_income,
        "categories": categories
    }


def income_entry(income: Income) -> Dict[str, Any]:
    return {
        "id": income.id,
        "description": income.description,
        "amount": income.amount,
        "date": income.date,
        "income_category_id": income.income_category_id,
        "income_category_name": income.income_category.name if income.income_category else None
    }


class BudgetService:
    """Service for reading and creating budgets"""

    @staticmethod
    async def get_budgets(db: AsyncSession, household_id: str) -> List[Budget]:
        """Budgets of a household, newest period first"""
        query = (
            select(Budget)
            .where(Budget.household_id == household_id)
            .order_by(Budget.year.desc(), Budget.month.desc())
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def get_budget(db: AsyncSession, budget_id: str) -> Optional[Budget]:
        """Budget with its category/item/expense tree, freshly loaded"""
        query = (
            select(Budget)
            .where(Budget.id == budget_id)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()

    @staticmethod
    async def find_budget_for_period(db: AsyncSession, household_id: str, month: int, year: int) -> Optional[Budget]:
        query = select(Budget).where(
            and_(Budget.household_id == household_id, Budget.month == month, Budget.year == year)
        )
        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    async def create_budget(db: AsyncSession, data: BudgetCreate) -> Budget:
        """Create an empty budget; categories are added through the full-state update"""
        existing = await BudgetService.find_budget_for_period(db, data.household_id, data.month, data.year)
        if existing:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="A budget already exists for this month and year"
            )

        currency = data.currency.value if data.currency else settings.DEFAULT_CURRENCY
        budget = Budget(
            household_id=data.household_id,
            name=data.name,
            month=data.month,
            year=data.year,
            currency=Currency(currency)
        )
        db.add(budget)
        await db.commit()
        await db.refresh(budget)
        logger.info(f"Budget {budget.id} created for household {data.household_id} ({data.year}-{data.month:02d})")
        return budget

    @staticmethod
    async def get_budget_detail(db: AsyncSession, budget: Budget) -> Dict[str, Any]:
        """Budget tree plus the household's income for the same month"""
        income = await IncomeService.get_income(db, budget.household_id, budget.year, budget.month)
        income_amount = sum((entry.amount for entry in income), Decimal("0"))

        return {
            "id": budget.id,
            "name": budget.name,
            "month": budget.month,
            "year": budget.year,
            "currency": budget.currency,
            "household_id": budget.household_id,
            "household": budget.household,
            "created_at": budget.created_at,
            "categories": budget.categories,
            "income_data": [income_entry(entry) for entry in income],
            "income_amount": income_amount
        }

    @staticmethod
    async def get_budget_summary(db: AsyncSession, budget: Budget) -> Dict[str, Any]:
        income = await IncomeService.get_income(db, budget.household_id, budget.year, budget.month)
        total_income = sum((entry.amount for entry in income), Decimal("0"))
        return summarize_budget(budget, total_income)
