from wizard.client import LoanApiClient
from wizard.documents import DOCUMENT_REQUIREMENTS, DocumentAttachmentManager, DocumentSlot
from wizard.drafts import DraftCoordinator
from wizard.errors import (
    ApiError,
    DocumentError,
    DocumentUploadBlockedError,
    DraftSaveError,
    DraftValidationError,
    FileTooLargeError,
    StepNotReachedError,
    UnsupportedFileTypeError,
    WizardError,
)
from wizard.sequencer import STEPS, WizardProgress
from wizard.session import Notice, WizardSession
from wizard.state import ApplicationState, build_payload, sanitize
from wizard.validation import StepValidation, get_all_step_validations, get_step_validation

__all__ = [
    "DOCUMENT_REQUIREMENTS",
    "STEPS",
    "ApiError",
    "ApplicationState",
    "DocumentAttachmentManager",
    "DocumentError",
    "DocumentSlot",
    "DocumentUploadBlockedError",
    "DraftCoordinator",
    "DraftSaveError",
    "DraftValidationError",
    "FileTooLargeError",
    "LoanApiClient",
    "Notice",
    "StepNotReachedError",
    "StepValidation",
    "UnsupportedFileTypeError",
    "WizardError",
    "WizardProgress",
    "WizardSession",
    "build_payload",
    "get_all_step_validations",
    "get_step_validation",
    "sanitize",
]
