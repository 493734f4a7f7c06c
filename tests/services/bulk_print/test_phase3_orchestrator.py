from __future__ import annotations

from dataclasses import replace

import pytest

from evidence_share.bulk_print.collaborators import CollaboratorUnavailable
from evidence_share.bulk_print.config import BulkPrintPolicy, build_bulk_print_policy
from evidence_share.bulk_print.contracts import (
    FAILURE_INTERNAL_DISPATCH_ERROR,
    FAILURE_PREREQUISITE_DOCUMENT_MISSING,
    FAILURE_SUBMISSION_REJECTED,
    FAILURE_TEMPLATE_MISSING,
    FAILURE_UPSTREAM_UNAVAILABLE,
    Appeal,
    CaseDocument,
    CaseSnapshot,
    Credentials,
    Dispatched,
    DocumentLink,
    EvidenceDocument,
    Failed,
    NotEligible,
    PrintBundle,
    Template,
)
from evidence_share.bulk_print.orchestrator import (
    STATE_DONE,
    STATE_FETCH_CONTENT,
    STATE_GENERATE,
    STATE_SELECT,
    STATE_SUBMIT,
    STATE_TEMPLATE_CHECK,
    STATE_VERIFY_PREREQUISITE,
    PrintOrchestrator,
)


class StubIdentityProvider:
    def __init__(self, failures: int = 0) -> None:
        self.failures = failures
        self.calls = 0

    def get_credentials(self) -> Credentials:
        self.calls += 1
        if self.calls <= self.failures:
            raise CollaboratorUnavailable("identity-provider", "connection refused")
        return Credentials(user_token="Bearer user", service_token="service", user_id="16")


class StubTemplateResolver:
    def __init__(self, template: Template | None = Template(template_id="dl6-template", document_name="dl6")) -> None:
        self.template = template

    def resolve_template(self, snapshot: CaseSnapshot) -> Template | None:
        return self.template


class StubRenderer:
    def __init__(self, attach: list[CaseDocument] | None = None, error: Exception | None = None) -> None:
        self.attach = list(attach or [])
        self.error = error
        self.calls = 0

    def generate_and_attach(self, template: Template, snapshot: CaseSnapshot, credentials: Credentials) -> tuple:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return tuple(snapshot.documents) + tuple(self.attach)


class StubContentStore:
    def __init__(self, fail_on: str | None = None) -> None:
        self.fail_on = fail_on
        self.fetched: list[tuple[str, str]] = []

    def fetch(self, url: str, acting_user: str) -> bytes:
        self.fetched.append((url, acting_user))
        if self.fail_on is not None and url == self.fail_on:
            raise CollaboratorUnavailable("content-store", "timeout")
        return f"bytes:{url}".encode("utf-8")


class StubPrintProvider:
    def __init__(self, correlation_id: str | None = "U1", error: Exception | None = None) -> None:
        self.correlation_id = correlation_id
        self.error = error
        self.bundles: list[PrintBundle] = []

    def submit(self, bundle: PrintBundle, snapshot: CaseSnapshot) -> str | None:
        self.bundles.append(bundle)
        if self.error is not None:
            raise self.error
        return self.correlation_id


def _policy() -> BulkPrintPolicy:
    return build_bulk_print_policy(
        {
            "version": "v0",
            "policy_id": "evidence_share.bulk_print.v0",
            "revision": "r1",
            "bulk_print": {"allowed_received_via": ["Paper"]},
        }
    )


def _doc(name: str, doc_type: str) -> CaseDocument:
    return CaseDocument(
        value=EvidenceDocument(
            file_name=name,
            document_type=doc_type,
            link=DocumentLink(url=f"http://dm-store/documents/{name}"),
        )
    )


def _snapshot(documents: list[CaseDocument] | None = None) -> CaseSnapshot:
    return CaseSnapshot(
        case_id="1563382899630221",
        documents=tuple(documents if documents is not None else [_doc("a.pdf", "sscs1"), _doc("b.pdf", "dl6")]),
        appeal=Appeal(received_via="Paper", benefit_code="PIP"),
        created_in_gaps_from="validAppeal",
    )


def _orchestrator(
    *,
    identity: StubIdentityProvider | None = None,
    resolver: StubTemplateResolver | None = None,
    renderer: StubRenderer | None = None,
    content: StubContentStore | None = None,
    printer: StubPrintProvider | None = None,
) -> PrintOrchestrator:
    return PrintOrchestrator(
        policy=_policy(),
        identity_provider=identity or StubIdentityProvider(),
        template_resolver=resolver or StubTemplateResolver(),
        document_renderer=renderer or StubRenderer(),
        content_store=content or StubContentStore(),
        print_provider=printer or StubPrintProvider(),
    )


def test_dispatches_ordered_bundle_and_describes_it() -> None:
    content = StubContentStore()
    printer = StubPrintProvider(correlation_id="U1")
    result = _orchestrator(content=content, printer=printer).run(_snapshot())

    assert result.final_state == STATE_DONE
    assert isinstance(result.outcome, Dispatched)
    assert result.outcome.correlation_id == "U1"
    assert "bulk print id: U1" in result.outcome.description
    assert result.outcome.description.endswith("b.pdf, a.pdf")
    assert printer.bundles[0].names == ["b.pdf", "a.pdf"]
    assert [user for _, user in content.fetched] == ["sscs", "sscs"]


def test_generated_document_is_included_in_the_bundle() -> None:
    renderer = StubRenderer(attach=[_doc("dl6-generated.pdf", "dl6")])
    printer = StubPrintProvider()
    result = _orchestrator(renderer=renderer, printer=printer).run(_snapshot([_doc("a.pdf", "sscs1")]))

    assert isinstance(result.outcome, Dispatched)
    assert printer.bundles[0].names == ["dl6-generated.pdf", "a.pdf"]


def test_not_eligible_case_skips_every_collaborator() -> None:
    renderer = StubRenderer()
    printer = StubPrintProvider()
    snapshot = replace(_snapshot(), created_in_gaps_from="readyToList")
    result = _orchestrator(renderer=renderer, printer=printer).run(snapshot)

    assert isinstance(result.outcome, NotEligible)
    assert result.outcome.description == "Case state is now sent to DWP"
    assert renderer.calls == 0
    assert printer.bundles == []


def test_missing_template_fails_before_generation() -> None:
    renderer = StubRenderer()
    result = _orchestrator(resolver=StubTemplateResolver(template=None), renderer=renderer).run(_snapshot())

    assert isinstance(result.outcome, Failed)
    assert result.outcome.reason == FAILURE_TEMPLATE_MISSING
    assert result.outcome.description == (
        "Failed to send to bulk print for case 1563382899630221 because no template was found"
    )
    assert result.final_state == STATE_TEMPLATE_CHECK
    assert renderer.calls == 0


def test_identity_provider_failure_is_classified() -> None:
    renderer = StubRenderer()
    result = _orchestrator(identity=StubIdentityProvider(failures=1), renderer=renderer).run(_snapshot())

    assert isinstance(result.outcome, Failed)
    assert result.outcome.reason == FAILURE_UPSTREAM_UNAVAILABLE
    assert result.outcome.collaborator == "identity-provider"
    assert result.outcome.description == "Unable to contact idam"
    assert result.final_state == STATE_GENERATE
    assert renderer.calls == 0


def test_missing_prerequisite_document_never_fetches_or_submits() -> None:
    content = StubContentStore()
    printer = StubPrintProvider()
    snapshot = _snapshot([_doc("a.pdf", "sscs1"), _doc("c.pdf", "appellantEvidence")])
    result = _orchestrator(content=content, printer=printer).run(snapshot)

    assert isinstance(result.outcome, Failed)
    assert result.outcome.reason == FAILURE_PREREQUISITE_DOCUMENT_MISSING
    assert result.final_state == STATE_VERIFY_PREREQUISITE
    assert content.fetched == []
    assert printer.bundles == []


def test_empty_selection_is_a_missing_prerequisite() -> None:
    result = _orchestrator().run(_snapshot([]))
    assert isinstance(result.outcome, Failed)
    assert result.outcome.reason == FAILURE_PREREQUISITE_DOCUMENT_MISSING


def test_content_fetch_failure_abandons_the_whole_bundle() -> None:
    content = StubContentStore(fail_on="http://dm-store/documents/a.pdf")
    printer = StubPrintProvider()
    result = _orchestrator(content=content, printer=printer).run(_snapshot())

    assert isinstance(result.outcome, Failed)
    assert result.outcome.reason == FAILURE_UPSTREAM_UNAVAILABLE
    assert result.outcome.collaborator == "content-store"
    assert result.outcome.description == "Unable to contact dm-store"
    assert result.final_state == STATE_FETCH_CONTENT
    assert printer.bundles == []


def test_unexpected_content_error_is_still_a_content_store_failure() -> None:
    class ExplodingContentStore(StubContentStore):
        def fetch(self, url: str, acting_user: str) -> bytes:
            raise OSError("disk full")

    result = _orchestrator(content=ExplodingContentStore()).run(_snapshot())
    assert isinstance(result.outcome, Failed)
    assert result.outcome.collaborator == "content-store"


def test_missing_correlation_id_is_submission_rejected() -> None:
    result = _orchestrator(printer=StubPrintProvider(correlation_id=None)).run(_snapshot())

    assert isinstance(result.outcome, Failed)
    assert result.outcome.reason == FAILURE_SUBMISSION_REJECTED
    assert result.outcome.description == (
        "Failed to send to bulk print for case 1563382899630221. No print id returned"
    )
    assert result.final_state == STATE_SUBMIT


def test_print_provider_timeout_is_upstream_unavailable() -> None:
    printer = StubPrintProvider(error=CollaboratorUnavailable("print-provider", "timeout"))
    result = _orchestrator(printer=printer).run(_snapshot())

    assert isinstance(result.outcome, Failed)
    assert result.outcome.reason == FAILURE_UPSTREAM_UNAVAILABLE
    assert result.outcome.collaborator == "print-provider"


def test_unclassified_error_maps_to_internal_dispatch_error() -> None:
    renderer = StubRenderer(error=RuntimeError("template engine exploded"))
    result = _orchestrator(renderer=renderer).run(_snapshot())

    assert isinstance(result.outcome, Failed)
    assert result.outcome.reason == FAILURE_INTERNAL_DISPATCH_ERROR
    assert result.outcome.description == (
        "Send to DWP Error event has been triggered from Evidence Share service"
    )
    assert result.final_state == STATE_GENERATE


def test_renderer_outage_is_classified_as_document_renderer() -> None:
    renderer = StubRenderer(error=CollaboratorUnavailable("document-renderer", "read timed out"))
    printer = StubPrintProvider()
    result = _orchestrator(renderer=renderer, printer=printer).run(_snapshot())

    assert isinstance(result.outcome, Failed)
    assert result.outcome.reason == FAILURE_UPSTREAM_UNAVAILABLE
    assert result.outcome.collaborator == "document-renderer"
    assert result.outcome.description == "Unable to contact docmosis"
    assert result.final_state == STATE_GENERATE
    assert printer.bundles == []


def test_missing_snapshot_is_not_eligible() -> None:
    renderer = StubRenderer()
    result = _orchestrator(renderer=renderer).run(None)

    assert isinstance(result.outcome, NotEligible)
    assert result.final_state == STATE_DONE
    assert renderer.calls == 0


def test_selection_error_reports_the_select_state(monkeypatch: pytest.MonkeyPatch) -> None:
    def broken_select(documents):
        raise RuntimeError("ordering failed")

    monkeypatch.setattr("evidence_share.bulk_print.orchestrator.select_documents", broken_select)
    content = StubContentStore()
    result = _orchestrator(content=content).run(_snapshot())

    assert isinstance(result.outcome, Failed)
    assert result.outcome.reason == FAILURE_INTERNAL_DISPATCH_ERROR
    assert result.final_state == STATE_SELECT
    assert content.fetched == []
