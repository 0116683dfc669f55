from typing import Any, Optional


class WizardError(Exception):
    """Base class for everything the wizard surfaces to the borrower."""


class ApiError(WizardError):
    def __init__(self, status_code: int, message: str, errors: Optional[list[dict[str, Any]]] = None):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.errors = errors or []


class DraftValidationError(WizardError):
    """Rejected locally, before anything was sent."""


class DraftSaveError(WizardError):
    pass


class StepNotReachedError(WizardError):
    pass


class DocumentError(WizardError):
    pass


class DocumentUploadBlockedError(DocumentError):
    pass


class FileTooLargeError(DocumentError):
    pass


class UnsupportedFileTypeError(DocumentError):
    pass
