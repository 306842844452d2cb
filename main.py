from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from homebudget.core.database import Base, async_engine, close_redis
from homebudget.core.config import settings
from homebudget.modules.users.router import router as users_router
from homebudget.modules.households.router import router as households_router
from homebudget.modules.budgets.router import router as budgets_router
from homebudget.modules.expenses.router import router as expenses_router
from homebudget.modules.income.router import router as income_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events"""
    # Startup
    async with async_engine.begin() as conn:
        # Create all tables (for development - use Alembic in production)
        await conn.run_sync(Base.metadata.create_all)

    yield

    # Shutdown
    await close_redis()
    await async_engine.dispose()


app = FastAPI(
    title="HomeBudget API",
    description="Shared household budgets, expenses and income",
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# CORS Configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(users_router)
app.include_router(households_router)
app.include_router(budgets_router)
app.include_router(expenses_router)
app.include_router(income_router)


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "ok",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT
    }


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Welcome to HomeBudget API",
        "version": settings.APP_VERSION,
        "docs": "/docs"
    }
