"""Claim Submission Module.

Everything that happens once the operator presses Submit:
- Serializable claim snapshot and submitter-contact check
- Attachment references and storage
- PDF claim summary
- E-mail delivery to the claims inbox, with a confirmation to the submitter
"""

from submission.attachments import (
    AttachmentCategory,
    AttachmentRef,
    AttachmentRejectedError,
    AttachmentStore,
    InMemoryAttachmentStore,
    make_attachment_ref,
)
from submission.snapshot import (
    ClaimSnapshot,
    IncompleteSubmissionError,
    build_snapshot,
    require_submitter_contact,
)
from submission.email_provider import (
    DeliveryResult,
    DeliveryStatus,
    EmailAttachment,
    EmailMessage,
    EmailProvider,
    NullEmailProvider,
    get_email_provider,
    set_email_provider,
)
from submission.pdf_summary import ClaimSummaryPDFGenerator
from submission.service import ClaimSubmissionService, SubmissionResult, generate_reference_number

__all__ = [
    "AttachmentCategory",
    "AttachmentRef",
    "AttachmentRejectedError",
    "AttachmentStore",
    "InMemoryAttachmentStore",
    "make_attachment_ref",
    "ClaimSnapshot",
    "IncompleteSubmissionError",
    "build_snapshot",
    "require_submitter_contact",
    "DeliveryResult",
    "DeliveryStatus",
    "EmailAttachment",
    "EmailMessage",
    "EmailProvider",
    "NullEmailProvider",
    "get_email_provider",
    "set_email_provider",
    "ClaimSummaryPDFGenerator",
    "ClaimSubmissionService",
    "SubmissionResult",
    "generate_reference_number",
]
