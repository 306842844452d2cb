from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_
from sqlalchemy.orm import selectinload
from fastapi import HTTPException, status
from typing import List, Optional
import logging

from homebudget.modules.expenses.models import Expense
from homebudget.modules.expenses.schemas import ExpenseCreate
from homebudget.modules.budgets.models import ExpenseItem
from homebudget.modules.budgets.services import BudgetService
from homebudget.modules.households.models import HouseholdMember
from homebudget.modules.income.services import month_bounds

logger = logging.getLogger(__name__)


def _with_item():
    return selectinload(Expense.expense_item).selectinload(ExpenseItem.category)


class ExpenseService:
    """Service for recording and querying expenses"""

    @staticmethod
    async def get_expenses(
        db: AsyncSession,
        user_id: str,
        household_id: Optional[str] = None,
        budget_id: Optional[str] = None,
        category_id: Optional[str] = None,
        item_id: Optional[str] = None
    ) -> List[Expense]:
        """
        Expenses visible to the user, newest first.

        - budget_id limits results to the budget's household and month
        - category_id and item_id limit results to that category / item
        """
        member_households = select(HouseholdMember.household_id).where(HouseholdMember.user_id == user_id)
        query = select(Expense).where(Expense.household_id.in_(member_households))

        if household_id:
            query = query.where(Expense.household_id == household_id)

        if item_id:
            query = query.where(Expense.expense_item_id == item_id)

        if budget_id:
            budget = await BudgetService.get_budget(db, budget_id)
            if not budget:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Budget not found")
            start, end = month_bounds(budget.year, budget.month)
            query = query.where(
                and_(Expense.household_id == budget.household_id, Expense.date >= start, Expense.date < end)
            )

        if category_id:
            query = query.join(ExpenseItem, ExpenseItem.id == Expense.expense_item_id).where(
                ExpenseItem.category_id == category_id
            )

        query = query.options(_with_item()).order_by(Expense.date.desc(), Expense.created_at.desc())
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def get_expense(db: AsyncSession, expense_id: str) -> Optional[Expense]:
        query = (
            select(Expense)
            .where(Expense.id == expense_id)
            .options(_with_item())
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()

    @staticmethod
    async def create_expense(db: AsyncSession, data: ExpenseCreate) -> Expense:
        """Record an expense against an item of the same household"""
        result = await db.execute(select(ExpenseItem).where(ExpenseItem.id == data.expense_item_id))
        item = result.scalar_one_or_none()

        if not item or item.household_id != data.household_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid expense item"
            )

        expense = Expense(
            expense_item_id=item.id,
            household_id=data.household_id,
            description=data.description or "",
            amount=data.amount,
            date=data.date
        )
        db.add(expense)
        await db.commit()

        logger.info(f"Expense {expense.id} recorded against item {item.id}")
        return await ExpenseService.get_expense(db, expense.id)

    @staticmethod
    async def delete_expense(db: AsyncSession, expense: Expense) -> None:
        expense_id = expense.id
        await db.delete(expense)
        await db.commit()
        logger.info(f"Expense {expense_id} deleted")
