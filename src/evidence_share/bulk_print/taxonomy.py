"""Bulk print taxonomy: event kinds, case states, audit strings."""

from __future__ import annotations


EVENT_VALID_APPEAL_CREATED = "validAppealCreated"
EVENT_DRAFT_TO_VALID_APPEAL_CREATED = "draftToValidAppealCreated"
EVENT_VALID_APPEAL = "validAppeal"
EVENT_INTERLOC_VALID_APPEAL = "interlocValidAppeal"
EVENT_APPEAL_TO_PROCEED = "appealToProceed"
EVENT_SEND_TO_DWP = "sendToDwp"
EVENT_RESEND_TO_DWP = "resendToDwp"
EVENT_SENT_TO_DWP = "sentToDwp"
EVENT_SENT_TO_DWP_ERROR = "sendToDwpError"

DEFAULT_HANDLED_EVENT_KINDS: tuple[str, ...] = (
    EVENT_VALID_APPEAL_CREATED,
    EVENT_DRAFT_TO_VALID_APPEAL_CREATED,
    EVENT_VALID_APPEAL,
    EVENT_INTERLOC_VALID_APPEAL,
    EVENT_APPEAL_TO_PROCEED,
    EVENT_SEND_TO_DWP,
)

SUPPORTED_EVENT_KINDS: tuple[str, ...] = DEFAULT_HANDLED_EVENT_KINDS + (
    EVENT_RESEND_TO_DWP,
    EVENT_SENT_TO_DWP,
    EVENT_SENT_TO_DWP_ERROR,
)

# Event kinds that are routed even while translation work is outstanding.
TRANSLATION_BYPASS_EVENT_KINDS: frozenset[str] = frozenset({EVENT_RESEND_TO_DWP})

STATE_READY_TO_LIST = "readyToList"
HMCTS_DWP_STATE_SENT = "sentToDwp"
HMCTS_DWP_STATE_FAILED = "failedSending"
DWP_STATE_UNREGISTERED = "unregistered"

FIELD_DATE_SENT_TO_DWP = "dateSentToDwp"
FIELD_HMCTS_DWP_STATE = "hmctsDwpState"
FIELD_DWP_STATE = "dwpState"

DOC_TYPE_DL6 = "dl6"
DOC_TYPE_DL16 = "dl16"
DOC_TYPE_SSCS1 = "sscs1"
PREREQUISITE_DOC_TYPES: frozenset[str] = frozenset({DOC_TYPE_DL6, DOC_TYPE_DL16})
PRINTABLE_FILE_MARKER = ".pdf"

COLLABORATOR_IDENTITY_PROVIDER = "identity-provider"
COLLABORATOR_DOCUMENT_RENDERER = "document-renderer"
COLLABORATOR_CONTENT_STORE = "content-store"
COLLABORATOR_PRINT_PROVIDER = "print-provider"
COLLABORATOR_CASE_STORE = "case-store"

SUPPORTED_COLLABORATORS: tuple[str, ...] = (
    COLLABORATOR_IDENTITY_PROVIDER,
    COLLABORATOR_DOCUMENT_RENDERER,
    COLLABORATOR_CONTENT_STORE,
    COLLABORATOR_PRINT_PROVIDER,
    COLLABORATOR_CASE_STORE,
)

# Operator-facing subsystem names used in failure descriptions.
COLLABORATOR_DISPLAY_NAMES: dict[str, str] = {
    COLLABORATOR_IDENTITY_PROVIDER: "idam",
    COLLABORATOR_DOCUMENT_RENDERER: "docmosis",
    COLLABORATOR_CONTENT_STORE: "dm-store",
    COLLABORATOR_PRINT_PROVIDER: "bulk-print",
    COLLABORATOR_CASE_STORE: "ccd",
}

DEFAULT_CONTENT_STORE_USER = "sscs"

TITLE_SENT_TO_DWP = "Sent to DWP"
TITLE_SEND_TO_DWP_ERROR = "Send to DWP Error"
DESC_NOT_ELIGIBLE = "Case state is now sent to DWP"
DESC_INTERNAL_ERROR = "Send to DWP Error event has been triggered from Evidence Share service"
DESC_PREREQUISITE_MISSING = "No DL6 or DL16 document found on case, unable to send to bulk print"
DESC_DISPATCHED_PREFIX = "Case has been sent to the DWP via Bulk Print with bulk print id: "


class BulkPrintTaxonomyError(ValueError):
    """Raised when bulk print taxonomy checks fail."""


def ensure_supported_event_kind(event_kind: str) -> str:
    normalized = str(event_kind or "").strip()
    if normalized not in SUPPORTED_EVENT_KINDS:
        raise BulkPrintTaxonomyError(f"event kind not supported: {normalized!r}")
    return normalized


def ensure_supported_collaborator(collaborator: str) -> str:
    normalized = str(collaborator or "").strip()
    if normalized not in SUPPORTED_COLLABORATORS:
        raise BulkPrintTaxonomyError(f"collaborator not supported: {normalized!r}")
    return normalized


def unable_to_contact(collaborator: str) -> str:
    name = COLLABORATOR_DISPLAY_NAMES[ensure_supported_collaborator(collaborator)]
    return f"Unable to contact {name}"


def template_missing_description(case_id: str) -> str:
    return f"Failed to send to bulk print for case {case_id} because no template was found"


def submission_rejected_description(case_id: str) -> str:
    return f"Failed to send to bulk print for case {case_id}. No print id returned"


def dispatched_description(correlation_id: str, document_names: list[str]) -> str:
    return (
        DESC_DISPATCHED_PREFIX
        + str(correlation_id)
        + " and with documents: "
        + ", ".join(document_names)
    )
