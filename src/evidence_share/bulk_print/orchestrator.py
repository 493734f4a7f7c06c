"""Bulk print orchestration: generate, verify, select, fetch, submit."""

from __future__ import annotations

from dataclasses import dataclass
import logging

from .collaborators import (
    CollaboratorUnavailable,
    ContentStore,
    DocumentRenderer,
    IdentityProvider,
    PrintProvider,
    TemplateResolver,
)
from .config import BulkPrintPolicy
from .contracts import (
    FAILURE_INTERNAL_DISPATCH_ERROR,
    FAILURE_PREREQUISITE_DOCUMENT_MISSING,
    FAILURE_SUBMISSION_REJECTED,
    FAILURE_TEMPLATE_MISSING,
    FAILURE_UPSTREAM_UNAVAILABLE,
    CaseSnapshot,
    Dispatched,
    DispatchOutcome,
    EvidenceDocument,
    Failed,
    NotEligible,
    PrintBundle,
    PrintDocument,
)
from .eligibility import is_eligible
from .selection import has_prerequisite_document, is_printable, select_documents
from .taxonomy import (
    COLLABORATOR_CONTENT_STORE,
    COLLABORATOR_IDENTITY_PROVIDER,
    DESC_INTERNAL_ERROR,
    DESC_NOT_ELIGIBLE,
    DESC_PREREQUISITE_MISSING,
    dispatched_description,
    submission_rejected_description,
    template_missing_description,
    unable_to_contact,
)


logger = logging.getLogger("evidence_share.bulk_print.orchestrator")

STATE_START = "START"
STATE_TEMPLATE_CHECK = "TEMPLATE_CHECK"
STATE_GENERATE = "GENERATE"
STATE_VERIFY_PREREQUISITE = "VERIFY_PREREQUISITE"
STATE_SELECT = "SELECT"
STATE_FETCH_CONTENT = "FETCH_CONTENT"
STATE_SUBMIT = "SUBMIT"
STATE_DONE = "DONE"


@dataclass(frozen=True)
class OrchestrationResult:
    outcome: DispatchOutcome
    final_state: str


@dataclass
class PrintOrchestrator:
    policy: BulkPrintPolicy
    identity_provider: IdentityProvider
    template_resolver: TemplateResolver
    document_renderer: DocumentRenderer
    content_store: ContentStore
    print_provider: PrintProvider

    def run(self, snapshot: CaseSnapshot | None) -> OrchestrationResult:
        state = STATE_START
        case_id = snapshot.case_id if snapshot is not None else None
        try:
            if snapshot is None or not is_eligible(snapshot, self.policy):
                logger.info("Case not valid to send to bulk print for case id %s", case_id)
                return OrchestrationResult(NotEligible(DESC_NOT_ELIGIBLE), STATE_DONE)

            logger.info("Processing bulk print tasks for case id %s", case_id)
            state = STATE_TEMPLATE_CHECK
            template = self.template_resolver.resolve_template(snapshot)
            if template is None:
                return _failed(state, FAILURE_TEMPLATE_MISSING, template_missing_description(snapshot.case_id))

            state = STATE_GENERATE
            logger.info("Generating DL document for case id %s", case_id)
            try:
                credentials = self.identity_provider.get_credentials()
            except Exception as exc:
                return _unavailable(state, snapshot, _as_unavailable(exc, COLLABORATOR_IDENTITY_PROVIDER))
            try:
                documents = self.document_renderer.generate_and_attach(template, snapshot, credentials)
            except CollaboratorUnavailable as exc:
                return _unavailable(state, snapshot, exc)
            updated = snapshot.with_documents(tuple(documents))

            state = STATE_VERIFY_PREREQUISITE
            printable = [entry.value for entry in updated.documents if is_printable(entry)]
            if not has_prerequisite_document(printable):
                return _failed(state, FAILURE_PREREQUISITE_DOCUMENT_MISSING, DESC_PREREQUISITE_MISSING)

            state = STATE_SELECT
            selected = select_documents(updated.documents)
            logger.debug(
                "Bulk print order for case id %s: %s",
                case_id,
                [document.file_name for document in selected],
            )

            state = STATE_FETCH_CONTENT
            try:
                bundle = self._fetch_bundle(selected)
            except Exception as exc:
                return _unavailable(state, snapshot, _as_unavailable(exc, COLLABORATOR_CONTENT_STORE))

            state = STATE_SUBMIT
            logger.info("Sending to bulk print for case id %s", case_id)
            try:
                correlation_id = self.print_provider.submit(bundle, updated)
            except CollaboratorUnavailable as exc:
                return _unavailable(state, snapshot, exc)
            if not correlation_id:
                return _failed(
                    state,
                    FAILURE_SUBMISSION_REJECTED,
                    submission_rejected_description(snapshot.case_id),
                )

            return OrchestrationResult(
                Dispatched(
                    correlation_id=str(correlation_id),
                    description=dispatched_description(str(correlation_id), bundle.names),
                ),
                STATE_DONE,
            )
        except Exception:
            logger.exception("Error when bulk-printing caseId: %s", case_id)
            return _failed(state, FAILURE_INTERNAL_DISPATCH_ERROR, DESC_INTERNAL_ERROR)

    def _fetch_bundle(self, selected: tuple[EvidenceDocument, ...]) -> PrintBundle:
        printable: list[PrintDocument] = []
        for document in selected:
            assert document.url is not None and document.file_name is not None
            content = self.content_store.fetch(document.url, self.policy.content_store_user)
            printable.append(PrintDocument(content=content, name=document.file_name))
        return PrintBundle(documents=tuple(printable))


def _failed(state: str, reason: str, description: str, collaborator: str | None = None) -> OrchestrationResult:
    return OrchestrationResult(
        Failed(reason=reason, description=description, collaborator=collaborator),
        state,
    )


def _unavailable(state: str, snapshot: CaseSnapshot, exc: CollaboratorUnavailable) -> OrchestrationResult:
    description = unable_to_contact(exc.collaborator)
    logger.warning("%s unavailable for case id %s: %s", exc.collaborator, snapshot.case_id, exc.detail)
    return _failed(state, FAILURE_UPSTREAM_UNAVAILABLE, description, collaborator=exc.collaborator)


def _as_unavailable(exc: Exception, collaborator: str) -> CollaboratorUnavailable:
    if isinstance(exc, CollaboratorUnavailable) and exc.collaborator == collaborator:
        return exc
    return CollaboratorUnavailable(collaborator, str(exc))
