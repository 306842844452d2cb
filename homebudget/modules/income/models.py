from sqlalchemy import Column, String, Numeric, Date, DateTime, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from homebudget.core.database import Base, generate_uuid


class IncomeCategory(Base):
    """Household-defined income source (salary, freelance, ...)"""
    __tablename__ = "income_categories"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    household_id = Column(String(36), ForeignKey("households.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<IncomeCategory(id={self.id}, name={self.name})>"


class Income(Base):
    """Money received by a household, tracked separately from budgets"""
    __tablename__ = "income"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    household_id = Column(String(36), ForeignKey("households.id"), nullable=False, index=True)
    income_category_id = Column(String(36), ForeignKey("income_categories.id"), nullable=True)

    description = Column(String(255), default="", nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    date = Column(Date, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    income_category = relationship("IncomeCategory", lazy="selectin")

    def __repr__(self):
        return f"<Income(id={self.id}, amount={self.amount}, date={self.date})>"
