from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from homebudget.core.database import get_db
from homebudget.core.dependencies import RequestContext, get_request_context
from homebudget.modules.budgets import schemas
from homebudget.modules.budgets.models import Budget
from homebudget.modules.budgets.services import BudgetService
from homebudget.modules.budgets.reconciler import BudgetReconciler
from homebudget.modules.budgets.exceptions import (
    BudgetNotFoundError, BudgetAccessDeniedError, BudgetUpdateError
)
from homebudget.modules.households.services import HouseholdService

router = APIRouter(prefix="/api/v1/budgets", tags=["budgets"])


async def _get_accessible_budget(db: AsyncSession, budget_id: str, user_id: str) -> Budget:
    """Budget the user may see; 404 when unknown, 403 when not a member"""
    budget = await BudgetService.get_budget(db, budget_id)
    if not budget:
        raise HTTPException(status_code=404, detail="Budget not found")
    if not await HouseholdService.is_member(db, budget.household_id, user_id):
        raise HTTPException(status_code=403, detail="You do not have access to this budget")
    return budget


@router.get("", response_model=List[schemas.BudgetListItem])
async def get_budgets(
    household_id: str = Query(..., description="Household to list budgets for"),
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context)
):
    """Get all budgets of a household, newest month first"""
    await HouseholdService.require_member(db, household_id, ctx.user_id)
    return await BudgetService.get_budgets(db, household_id)


@router.post("", response_model=schemas.BudgetResponse, status_code=status.HTTP_201_CREATED)
async def create_budget(
    data: schemas.BudgetCreate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context)
):
    """
    Create a new budget.

    - One budget per household, month and year
    - Currency defaults to GTQ
    """
    await HouseholdService.require_member(db, data.household_id, ctx.user_id)
    return await BudgetService.create_budget(db, data)


@router.get("/{budget_id}", response_model=schemas.BudgetDetailResponse)
async def get_budget(
    budget_id: str,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context)
):
    """
    Get a budget with categories, items and expenses.

    - Includes the household's income for the budget month and its total
    """
    budget = await _get_accessible_budget(db, budget_id, ctx.user_id)
    return await BudgetService.get_budget_detail(db, budget)


@router.put("/{budget_id}", response_model=schemas.BudgetUpdateResponse)
async def update_budget(
    budget_id: str,
    data: schemas.BudgetState,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context)
):
    """
    Replace a budget's fields and category/item tree.

    - Categories and items with an id are updated in place
    - Categories and items without an id are created
    - Persisted categories and items missing from the request are deleted
    - All changes are applied in one transaction
    """
    await _get_accessible_budget(db, budget_id, ctx.user_id)

    try:
        budget = await BudgetReconciler(db).reconcile(budget_id, ctx.user_id, data)
    except BudgetNotFoundError:
        raise HTTPException(status_code=404, detail="Budget not found")
    except BudgetAccessDeniedError:
        raise HTTPException(status_code=403, detail="You do not have access to this budget")
    except BudgetUpdateError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update budget"
        )

    return {"message": "Budget updated successfully", "budget": budget}


@router.get("/{budget_id}/summary", response_model=schemas.BudgetSummary)
async def get_budget_summary(
    budget_id: str,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context)
):
    """Budgeted vs. spent per category and in total, with the month's income"""
    budget = await _get_accessible_budget(db, budget_id, ctx.user_id)
    return await BudgetService.get_budget_summary(db, budget)
