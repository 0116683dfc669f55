"""
Supporting-document slots for the documents step.

Each document type is a slot holding at most one file. Uploads and removals go
straight to the document endpoints and never touch the draft merge or metrics.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from pathlib import PurePath
from typing import Any, Literal, Optional

from utils.files import format_file_size
from wizard.client import LoanApiClient
from wizard.errors import (
    ApiError,
    DocumentError,
    DocumentUploadBlockedError,
    FileTooLargeError,
    UnsupportedFileTypeError,
)

MAX_UPLOAD_BYTES = 10 * 1024 * 1024

SlotStatus = Literal["pending", "uploaded", "failed"]


@dataclass(frozen=True)
class DocumentRequirement:
    type: str
    label: str
    description: str
    accepted_types: tuple[str, ...]

    def accepts(self, file_name: str) -> bool:
        return PurePath(file_name).suffix.lower() in self.accepted_types


DOCUMENT_REQUIREMENTS: tuple[DocumentRequirement, ...] = (
    DocumentRequirement(
        "financial-statements", "Financial Statements",
        "Last 3 years of business financial statements (P&L, Balance Sheet, Cash Flow)",
        (".pdf", ".xls", ".xlsx"),
    ),
    DocumentRequirement(
        "tax-returns", "Tax Returns", "Last 3 years of business and personal tax returns", (".pdf",)
    ),
    DocumentRequirement(
        "rent-roll", "Rent Roll", "Current rent roll showing all tenants, rents, and lease terms",
        (".pdf", ".xls", ".xlsx"),
    ),
    DocumentRequirement(
        "property-photos", "Property Photos", "Recent photos of the property (exterior and interior)",
        (".jpg", ".jpeg", ".png", ".pdf"),
    ),
    DocumentRequirement(
        "purchase-agreement", "Purchase Agreement", "Signed purchase agreement or LOI (if acquisition)",
        (".pdf", ".doc", ".docx"),
    ),
    DocumentRequirement("appraisal", "Property Appraisal", "Recent property appraisal report (if available)", (".pdf",)),
    DocumentRequirement(
        "environmental", "Environmental Report", "Phase I Environmental Site Assessment (if available)", (".pdf",)
    ),
    DocumentRequirement("insurance", "Insurance Documentation", "Current property insurance policy or quote", (".pdf",)),
)
_REQUIREMENTS_BY_TYPE = {r.type: r for r in DOCUMENT_REQUIREMENTS}


@dataclass(frozen=True)
class DocumentSlot:
    type: str
    file_name: str
    file_size: int
    status: SlotStatus
    document_id: Optional[str] = None
    uploaded_at: Optional[str] = None
    error: Optional[str] = None

    @property
    def size_label(self) -> str:
        return format_file_size(self.file_size) if self.file_size else ""


def _slot_from_document(doc: dict[str, Any]) -> DocumentSlot:
    return DocumentSlot(
        type=doc["type"],
        file_name=doc.get("name") or "",
        file_size=0,
        status=doc.get("status") or "pending",
        document_id=doc.get("id"),
        uploaded_at=doc.get("uploadedAt"),
    )


class DocumentAttachmentManager:
    def __init__(self, client: LoanApiClient, application_id: Optional[str] = None):
        self._client = client
        self.application_id = application_id
        self.slots: dict[str, DocumentSlot] = {}

    @property
    def uploaded_count(self) -> int:
        return sum(1 for s in self.slots.values() if s.status == "uploaded")

    async def load(self) -> dict[str, DocumentSlot]:
        """Fill slots from the server; the list is newest first, so the newest per type wins."""
        if not self.application_id:
            return self.slots
        try:
            documents = await self._client.list_documents(self.application_id)
        except ApiError as e:
            raise DocumentError(f"Could not load documents: {e.message}") from e
        slots: dict[str, DocumentSlot] = {}
        for doc in documents:
            slots.setdefault(doc["type"], _slot_from_document(doc))
        self.slots = slots
        return self.slots

    async def upload(
        self,
        doc_type: str,
        file_name: str,
        content: bytes,
        content_type: str = "application/octet-stream",
    ) -> DocumentSlot:
        if not self.application_id:
            raise DocumentUploadBlockedError("Please save your application before uploading documents.")
        if len(content) > MAX_UPLOAD_BYTES:
            raise FileTooLargeError("Please select a file smaller than 10MB.")
        requirement = _REQUIREMENTS_BY_TYPE.get(doc_type)
        if requirement is not None and not requirement.accepts(file_name):
            raise UnsupportedFileTypeError(
                f"{requirement.label} accepts {', '.join(requirement.accepted_types)} files."
            )

        previous = self.slots.get(doc_type)
        placeholder = DocumentSlot(
            type=doc_type,
            file_name=file_name,
            file_size=len(content),
            status="pending",
            uploaded_at=datetime.now(timezone.utc).isoformat(),
        )
        self.slots = {**self.slots, doc_type: placeholder}
        try:
            doc = await self._client.upload_document(
                self.application_id, doc_type, file_name=file_name, content=content, content_type=content_type
            )
        except ApiError as e:
            # Keep the placeholder so the borrower can retry.
            failed = replace(
                placeholder,
                status="failed",
                error=e.message,
                document_id=previous.document_id if previous else None,
            )
            self.slots = {**self.slots, doc_type: failed}
            raise DocumentError(f"Failed to upload {file_name}: {e.message}") from e

        uploaded = replace(
            placeholder,
            status=doc.get("status") or "uploaded",
            document_id=doc["id"],
            uploaded_at=doc.get("uploadedAt") or placeholder.uploaded_at,
        )
        self.slots = {**self.slots, doc_type: uploaded}
        if previous is not None and previous.document_id:
            try:
                await self._client.delete_document(self.application_id, previous.document_id)
            except ApiError as e:
                raise DocumentError(
                    f"{file_name} was uploaded, but the file it replaces could not be removed: {e.message}"
                ) from e
        return uploaded

    async def remove(self, doc_type: str) -> None:
        slot = self.slots.get(doc_type)
        if slot is None or not slot.document_id:
            return
        try:
            await self._client.delete_document(self.application_id, slot.document_id)
        except ApiError as e:
            raise DocumentError(f"Failed to remove document: {e.message}") from e
        self.slots = {k: v for k, v in self.slots.items() if k != doc_type}
