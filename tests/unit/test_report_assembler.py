"""Unit tests for report assembly and encoding."""

from __future__ import annotations

import msgspec

from capgate.capabilities import (
    DEFAULT_POLICY,
    LIVE_MODE_GAP,
    BranchProtectionFacts,
    ProtectionClassification,
    RepositoryFacts,
    assemble_report,
    assess_evidence,
    build_token_matrix,
    encode_report,
    repository_facts,
    short_circuit_report,
)
from capgate.capabilities.gaps import missing_repository_gap
from capgate.evidence import Step
from tests.helpers.evidence_builders import (
    classic_protection,
    evidence_from_tokens,
    forbidden,
    repo_metadata,
    response,
    token_steps,
)


def test_repository_facts_come_from_first_successful_read() -> None:
    """The first token whose metadata read succeeded supplies repo facts."""
    evidence = evidence_from_tokens(
        {
            "PAT_DENIED": {Step.REPO_METADATA: forbidden()},
            "PAT_FIRST": {
                Step.REPO_METADATA: response(
                    200, repo_metadata(default_branch="trunk", private=True)
                )
            },
            "PAT_SECOND": {
                Step.REPO_METADATA: response(
                    200, repo_metadata(default_branch="main", allow_squash_merge=False)
                )
            },
        }
    )

    facts = repository_facts(evidence)

    assert facts == RepositoryFacts(
        default_branch="trunk",
        visibility="private",
        auto_merge_enabled=False,
        allow_squash_merge=True,
    )


def test_repository_facts_leave_hidden_settings_undetermined() -> None:
    """Settings missing from the metadata read stay undetermined."""
    evidence = evidence_from_tokens(
        {
            "PAT_RO": {
                Step.REPO_METADATA: response(
                    200,
                    repo_metadata(allow_auto_merge=None, allow_squash_merge=None),
                )
            }
        }
    )

    facts = repository_facts(evidence)

    assert facts.allow_squash_merge is msgspec.UNSET
    assert facts.auto_merge_enabled is msgspec.UNSET
    assert facts.squash_merge_disabled is False


def test_assemble_report_merges_context() -> None:
    """Protection and repository facts land in one context."""
    evidence = evidence_from_tokens({"PAT_MIN": token_steps()})
    matrix = build_token_matrix(evidence)

    report = assemble_report(
        protection=BranchProtectionFacts(
            classification=ProtectionClassification.RULES,
            required_status_checks_enabled=True,
            required_status_check_contexts=("ci",),
            pr_required=False,
        ),
        repository=repository_facts(evidence),
        matrix=matrix,
        policy=DEFAULT_POLICY,
    )

    context = report.context
    assert context.branch_protection is ProtectionClassification.RULES
    assert context.default_branch == "main"
    assert context.visibility == "public"
    assert context.usable_tokens == ("PAT_MIN",)
    assert context.required_status_check_contexts == ("ci",)
    assert context.required_approvals is msgspec.UNSET
    assert report.gaps == ()
    assert report.capability_minimum_tokens != msgspec.UNSET


def test_encoded_report_uses_camel_case_and_omits_undetermined() -> None:
    """Undetermined facts are absent keys; conclusive falses are present."""
    evidence = evidence_from_tokens(
        {
            "PAT_MIN": token_steps(
                classic=response(200, classic_protection(status_checks=False))
            )
        }
    )

    encoded = msgspec.json.decode(encode_report(assess_evidence(evidence)))

    context = encoded["context"]
    assert context["branchProtection"] == "classic"
    assert context["requiredStatusChecksEnabled"] is False
    assert context["prRequired"] is False
    assert "requiredApprovals" not in context
    assert encoded["tokenMatrix"]["PAT_MIN"]["canListBranches"] is True
    assert "capabilityMinimumTokens" in encoded


def test_assessment_is_byte_identical_on_rerun() -> None:
    """The same evidence always encodes to the same bytes."""
    evidence = evidence_from_tokens(
        {
            "PAT_ADMIN": token_steps(admin=True),
            "PAT_MIN": token_steps(classic=forbidden()),
        }
    )

    first = encode_report(assess_evidence(evidence))
    second = encode_report(assess_evidence(evidence))

    assert first == second


def test_short_circuit_report_shape() -> None:
    """A report that never evaluated tokens has no minimums key."""
    report = short_circuit_report(missing_repository_gap())

    encoded = msgspec.json.decode(encode_report(report))

    assert encoded == {
        "gaps": [
            {
                "capability": LIVE_MODE_GAP,
                "reason": "Missing SAR_REPO env var",
                "recommendation": "Set SAR_REPO=owner/repo to enable live probing.",
            }
        ],
        "context": {"branchProtection": "unknown", "usableTokens": []},
        "tokenMatrix": {},
    }
