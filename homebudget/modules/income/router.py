from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from homebudget.core.database import get_db
from homebudget.core.dependencies import RequestContext, get_request_context
from homebudget.modules.households.services import HouseholdService
from homebudget.modules.income import schemas
from homebudget.modules.income.services import IncomeService

router = APIRouter(prefix="/api/v1/income", tags=["income"])


@router.get("", response_model=List[schemas.IncomeResponse])
async def get_income(
    household_id: str = Query(..., description="Household to list income for"),
    year: Optional[int] = Query(None, ge=2000, le=2100),
    month: Optional[int] = Query(None, ge=1, le=12),
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context)
):
    """
    Get household income.

    - Pass both year and month to limit results to that month
    """
    await HouseholdService.require_member(db, household_id, ctx.user_id)
    return await IncomeService.get_income(db, household_id, year, month)


@router.post("", response_model=schemas.IncomeResponse, status_code=status.HTTP_201_CREATED)
async def create_income(
    data: schemas.IncomeCreate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context)
):
    """Record income received by a household"""
    await HouseholdService.require_member(db, data.household_id, ctx.user_id)
    return await IncomeService.create_income(db, data)


@router.get("/categories", response_model=List[schemas.IncomeCategoryResponse])
async def get_income_categories(
    household_id: str = Query(...),
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context)
):
    """Get income categories of a household"""
    await HouseholdService.require_member(db, household_id, ctx.user_id)
    return await IncomeService.get_categories(db, household_id)


@router.post("/categories", response_model=schemas.IncomeCategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_income_category(
    data: schemas.IncomeCategoryCreate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context)
):
    """Create an income category for a household"""
    await HouseholdService.require_member(db, data.household_id, ctx.user_id)
    return await IncomeService.create_category(db, data)
