"""Unit tests for the Markdown capability summary."""

from __future__ import annotations

from capgate.capabilities import (
    assess_evidence,
    render_report_markdown,
    short_circuit_report,
)
from capgate.capabilities.gaps import missing_repository_gap
from capgate.evidence import Step
from tests.helpers.evidence_builders import (
    evidence_from_tokens,
    forbidden,
    repo_metadata,
    response,
    token_steps,
)


def test_render_lists_sections_in_order() -> None:
    """A full report renders gaps, repository, tokens and minimums."""
    report = assess_evidence(evidence_from_tokens({"PAT_MIN": token_steps()}))

    text = render_report_markdown(report, title="octo/widget")

    assert text.startswith("# Release capability report: octo/widget\n")
    headings = [line for line in text.splitlines() if line.startswith("## ")]
    assert headings == ["## Gaps", "## Repository", "## Tokens", "## Minimum tokens"]
    assert "No capability gaps." in text
    assert "- Branch protection: none" in text
    assert "| PAT_MIN | yes | yes | yes | yes | no | yes |" in text
    assert "- push: PAT_MIN" in text


def test_render_distinguishes_undetermined_from_false() -> None:
    """Facts that could not be read are never rendered as ``no``."""
    evidence = evidence_from_tokens(
        {
            "PAT_RO": {
                Step.REPO_METADATA: response(
                    200, repo_metadata(push=False, allow_squash_merge=None)
                ),
                Step.CLASSIC_PROTECTION: forbidden(),
                Step.RULES_PROTECTION: forbidden(),
            }
        }
    )

    text = render_report_markdown(assess_evidence(evidence))

    assert text.startswith("# Release capability report\n")
    assert "- Branch protection: unknown" in text
    assert "- Squash merge allowed: undetermined" in text
    assert "- Required approvals: undetermined" in text
    assert "- Usable tokens: (none)" in text
    assert "- **usable-token**:" in text


def test_short_circuit_report_has_no_token_sections() -> None:
    """A report that never probed omits the token and minimum sections."""
    text = render_report_markdown(short_circuit_report(missing_repository_gap()))

    assert "## Tokens" not in text
    assert "## Minimum tokens" not in text
    assert "- **live-mode**: Missing SAR_REPO env var" in text


def test_render_names_an_explicit_target_branch() -> None:
    """An overridden branch is named next to the protection facts."""
    report = assess_evidence(evidence_from_tokens({"PAT_MIN": token_steps()}))

    with_branch = render_report_markdown(report, branch="release")
    without_branch = render_report_markdown(report)

    assert "- Target branch: release\n- Branch protection: none" in with_branch
    assert "Target branch" not in without_branch
