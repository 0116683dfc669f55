from sqlalchemy import Boolean, Column, DateTime, String, Text, func
from sqlalchemy import JSON
from sqlalchemy.orm import relationship

from database import Base

# Lifecycle order; status may only move forward (or stay put).
APPLICATION_STATUSES = ("draft", "submitted", "term-sheet", "underwriting", "closing", "closed")


class LoanApplication(Base):
    __tablename__ = "loan_applications"

    id = Column(String(64), primary_key=True, index=True)
    user_id = Column(String(128), nullable=False, index=True)

    # Quick start
    loan_type = Column(String(32), nullable=True)
    loan_amount = Column(String(32), nullable=True)
    property_city = Column(String(128), nullable=True)
    property_state = Column(String(32), nullable=True)

    # Property basics
    property_name = Column(Text, nullable=True)
    property_address = Column(Text, nullable=True)
    property_type = Column(String(32), nullable=True)
    square_footage = Column(String(32), nullable=True)
    units = Column(String(32), nullable=True)
    year_built = Column(String(8), nullable=True)
    occupancy = Column(String(16), nullable=True)

    # Borrower
    entity_name = Column(String(256), nullable=True)
    borrower_type = Column(String(32), nullable=True)
    contact_email = Column(String(256), nullable=True)
    contact_phone = Column(String(64), nullable=True)
    years_experience = Column(String(16), nullable=True)
    projects_completed = Column(String(16), nullable=True)

    # Type-dependent loan terms, stored exactly as the client sent them
    loan_specifics = Column(JSON, nullable=True)

    # Financial snapshot
    net_worth = Column(String(32), nullable=True)
    liquid_assets = Column(String(32), nullable=True)
    down_payment_source = Column(String(32), nullable=True)
    credit_score = Column(String(8), nullable=True)
    has_bankruptcy = Column(Boolean, nullable=False, default=False)
    authorize_credit_pull = Column(Boolean, nullable=False, default=False)

    # Property performance
    annual_gross_income = Column(String(32), nullable=True)
    annual_operating_expenses = Column(String(32), nullable=True)
    annual_noi = Column(String(32), nullable=True)
    major_tenants = Column(JSON, nullable=True)
    recent_improvements = Column(Text, nullable=True)
    planned_improvements = Column(Text, nullable=True)
    is_income_producing = Column(Boolean, nullable=False, default=True)
    property_management = Column(String(32), nullable=True)

    # Calculated metrics (server-side only)
    ltv = Column(String(16), nullable=True)
    dscr = Column(String(16), nullable=True)
    monthly_interest = Column(String(32), nullable=True)

    status = Column(String(32), nullable=False, default="draft", index=True)
    current_step = Column(String(32), nullable=True, default="quick-start")
    submitted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    documents = relationship(
        "Document",
        back_populates="application",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
