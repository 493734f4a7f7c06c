"""Bulk print dispatch surfaces."""

from .collaborators import (
    CaseRecordStore,
    CollaboratorUnavailable,
    ConfiguredTemplateResolver,
    ContentStore,
    DocumentRenderer,
    IdentityProvider,
    PrintProvider,
    TemplateResolver,
)
from .config import (
    BulkPrintConfigError,
    BulkPrintPolicy,
    TemplatePolicy,
    build_bulk_print_policy,
    load_bulk_print_policy,
)
from .contracts import (
    FAILURE_INTERNAL_DISPATCH_ERROR,
    FAILURE_PREREQUISITE_DOCUMENT_MISSING,
    FAILURE_REASONS,
    FAILURE_SUBMISSION_REJECTED,
    FAILURE_TEMPLATE_MISSING,
    FAILURE_UPSTREAM_UNAVAILABLE,
    Appeal,
    BulkPrintContractError,
    CaseDocument,
    CaseEvent,
    CaseSnapshot,
    CaseUpdate,
    Credentials,
    Dispatched,
    DispatchOutcome,
    DocumentLink,
    EvidenceDocument,
    Failed,
    NotEligible,
    PrintBundle,
    PrintDocument,
    Template,
)
from .eligibility import can_handle, is_eligible, resend_bypasses_translation
from .handler import BulkPrintHandlerError, HandleResult, SendToBulkPrintHandler, build_handler
from .orchestrator import OrchestrationResult, PrintOrchestrator
from .recorder import OutcomeRecorder, build_case_update
from .selection import has_prerequisite_document, is_printable, select_documents

__all__ = [
    "FAILURE_INTERNAL_DISPATCH_ERROR",
    "FAILURE_PREREQUISITE_DOCUMENT_MISSING",
    "FAILURE_REASONS",
    "FAILURE_SUBMISSION_REJECTED",
    "FAILURE_TEMPLATE_MISSING",
    "FAILURE_UPSTREAM_UNAVAILABLE",
    "Appeal",
    "BulkPrintConfigError",
    "BulkPrintContractError",
    "BulkPrintHandlerError",
    "BulkPrintPolicy",
    "CaseDocument",
    "CaseEvent",
    "CaseRecordStore",
    "CaseSnapshot",
    "CaseUpdate",
    "CollaboratorUnavailable",
    "ConfiguredTemplateResolver",
    "ContentStore",
    "Credentials",
    "Dispatched",
    "DispatchOutcome",
    "DocumentLink",
    "DocumentRenderer",
    "EvidenceDocument",
    "Failed",
    "HandleResult",
    "IdentityProvider",
    "NotEligible",
    "OrchestrationResult",
    "OutcomeRecorder",
    "PrintBundle",
    "PrintDocument",
    "PrintOrchestrator",
    "PrintProvider",
    "SendToBulkPrintHandler",
    "Template",
    "TemplatePolicy",
    "TemplateResolver",
    "build_bulk_print_policy",
    "build_case_update",
    "build_handler",
    "can_handle",
    "has_prerequisite_document",
    "is_eligible",
    "is_printable",
    "load_bulk_print_policy",
    "resend_bypasses_translation",
    "select_documents",
]
