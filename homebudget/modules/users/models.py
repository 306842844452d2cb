from sqlalchemy import Column, String, DateTime, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from homebudget.core.database import Base, generate_uuid
import enum


class Language(str, enum.Enum):
    """Supported interface languages"""
    EN = "en"
    ES = "es"


class User(Base):
    """Application user, a member of one or more households"""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_uuid)

    # Authentication
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)

    # Profile
    name = Column(String(100), nullable=False)
    language = Column(SQLEnum(Language), default=Language.EN, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    memberships = relationship("HouseholdMember", back_populates="user", lazy="raise_on_sql")

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email})>"
