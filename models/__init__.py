from models.application import APPLICATION_STATUSES, LoanApplication
from models.document import DOCUMENT_STATUSES, Document

__all__ = [
    "APPLICATION_STATUSES",
    "DOCUMENT_STATUSES",
    "Document",
    "LoanApplication",
]
