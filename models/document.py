from sqlalchemy import Column, DateTime, ForeignKey, String, func
from sqlalchemy.orm import relationship

from database import Base

DOCUMENT_STATUSES = ("uploaded", "pending", "required")


class Document(Base):
    __tablename__ = "documents"

    id = Column(String(64), primary_key=True, index=True)
    application_id = Column(
        String(64), ForeignKey("loan_applications.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(String(128), nullable=False, index=True)
    name = Column(String(256), nullable=False)
    # Free-form category tag (bank-statements, tax-returns, ...)
    type = Column(String(64), nullable=False)
    file_type = Column(String(64), nullable=True)
    file_size = Column(String(32), nullable=True)
    status = Column(String(16), nullable=False, default="pending")
    storage_path = Column(String(1024), nullable=True)
    uploaded_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    application = relationship("LoanApplication", back_populates="documents")
