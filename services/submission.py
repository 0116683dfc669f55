from __future__ import annotations

import mimetypes
from typing import Any, Sequence

from models import Document
from services.notifications import Attachment, EmailNotifier
from services.object_storage import ObjectStorage
from utils.log import get_logger

logger = get_logger(__name__)


def _attachment_filename(doc: Document) -> str:
    stored_name = doc.storage_path.rsplit("/", 1)[-1] if doc.storage_path else doc.name
    # storage names are "<millis>-<original name>"
    _, _, original = stored_name.partition("-")
    return original or stored_name


async def dispatch_submission(
    application: dict[str, Any],
    documents: Sequence[Document],
    storage: ObjectStorage,
    notifier: EmailNotifier,
) -> None:
    """
    Email the submitted application with every uploaded document attached.
    Raises ObjectStorageError / NotificationError; the caller has already committed the
    status change, so a failure here never undoes the submission.
    """
    attachments: list[Attachment] = []
    for doc in documents:
        if doc.status != "uploaded" or not doc.storage_path:
            continue
        content = await storage.download_as_bytes(doc.storage_path)
        filename = _attachment_filename(doc)
        attachments.append(
            Attachment(filename=filename, content=content, content_type=mimetypes.guess_type(filename)[0])
        )
    logger.info("Dispatching submission notification for %s", application["id"])
    await notifier.send_submission(application, attachments)
