from sqlalchemy import Column, String, Numeric, Date, DateTime, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from homebudget.core.database import Base, generate_uuid


class Expense(Base):
    """Actual spend recorded against a budget item"""
    __tablename__ = "expenses"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    expense_item_id = Column(String(36), ForeignKey("expense_items.id"), nullable=False, index=True)
    household_id = Column(String(36), ForeignKey("households.id"), nullable=False, index=True)

    description = Column(String(255), default="", nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    date = Column(Date, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    expense_item = relationship("ExpenseItem", back_populates="expenses", lazy="raise_on_sql")

    def __repr__(self):
        return f"<Expense(id={self.id}, amount={self.amount}, date={self.date})>"
