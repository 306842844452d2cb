from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from homebudget.core.database import get_db
from homebudget.core.dependencies import RequestContext, get_request_context
from homebudget.modules.expenses import schemas
from homebudget.modules.expenses.services import ExpenseService
from homebudget.modules.households.services import HouseholdService

router = APIRouter(prefix="/api/v1/expenses", tags=["expenses"])


@router.get("", response_model=List[schemas.ExpenseResponse])
async def get_expenses(
    household_id: Optional[str] = Query(None),
    budget_id: Optional[str] = Query(None, description="Only expenses dated in the budget's month"),
    category_id: Optional[str] = Query(None),
    item_id: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context)
):
    """
    Get expenses with optional filters.

    - Only households the user belongs to are searched
    """
    if household_id:
        await HouseholdService.require_member(db, household_id, ctx.user_id)

    return await ExpenseService.get_expenses(
        db, ctx.user_id,
        household_id=household_id,
        budget_id=budget_id,
        category_id=category_id,
        item_id=item_id
    )


@router.post("", response_model=schemas.ExpenseCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_expense(
    data: schemas.ExpenseCreate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context)
):
    """
    Record an expense.

    - The item must belong to the given household
    """
    await HouseholdService.require_member(db, data.household_id, ctx.user_id)
    expense = await ExpenseService.create_expense(db, data)
    return {"message": "Expense created successfully", "expense": expense}


@router.delete("/{expense_id}", status_code=status.HTTP_200_OK)
async def delete_expense(
    expense_id: str,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context)
):
    """Delete an expense"""
    expense = await ExpenseService.get_expense(db, expense_id)
    if not expense:
        raise HTTPException(status_code=404, detail="Expense not found")
    await HouseholdService.require_member(db, expense.household_id, ctx.user_id)

    await ExpenseService.delete_expense(db, expense)
    return {"message": "Expense deleted successfully"}
