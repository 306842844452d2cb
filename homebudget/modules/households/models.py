from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from homebudget.core.database import Base, generate_uuid
import enum


class HouseholdRole(str, enum.Enum):
    """Role of a user inside a household"""
    OWNER = "OWNER"
    ADMIN = "ADMIN"
    MEMBER = "MEMBER"


# Roles allowed to change who belongs to a household
MANAGER_ROLES = (HouseholdRole.OWNER, HouseholdRole.ADMIN)


class Household(Base):
    """
    A group of users sharing budgets, expenses and income.
    Every budget row transitively belongs to exactly one household.
    """
    __tablename__ = "households"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(100), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    members = relationship("HouseholdMember", back_populates="household", lazy="selectin")

    def __repr__(self):
        return f"<Household(id={self.id}, name={self.name})>"


class HouseholdMember(Base):
    """
    Membership of a user in a household.
    `order` is the member's own display position for the household.
    """
    __tablename__ = "household_members"
    __table_args__ = (
        UniqueConstraint("user_id", "household_id", name="uq_household_members_user_household"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    household_id = Column(String(36), ForeignKey("households.id"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)

    role = Column(SQLEnum(HouseholdRole), default=HouseholdRole.MEMBER, nullable=False)
    order = Column(Integer, default=0, nullable=False)

    joined_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    household = relationship("Household", back_populates="members", lazy="raise_on_sql")
    user = relationship("User", back_populates="memberships", lazy="selectin")

    def __repr__(self):
        return f"<HouseholdMember(household={self.household_id}, user={self.user_id}, role={self.role})>"
