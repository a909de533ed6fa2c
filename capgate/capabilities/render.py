"""Markdown renderer for capability reports.

Produces the human-readable summary printed by the CLI. The JSON encoding of
:class:`~capgate.capabilities.models.CapabilityReport` remains the contract
for automation; this rendering is for people reading a job log.

Usage
-----
>>> from capgate.capabilities.render import render_report_markdown
>>> text = render_report_markdown(report, title="octo/widget")

"""

from __future__ import annotations

import typing as typ

import msgspec

if typ.TYPE_CHECKING:
    from .models import CapabilityContext, CapabilityReport, TokenCapabilities

_UNDETERMINED = "undetermined"

_MATRIX_COLUMNS: tuple[tuple[str, str], ...] = (
    ("valid", "valid"),
    ("repo_read", "repo read"),
    ("can_list_branches", "list branches"),
    ("can_read_branch_protection", "read protection"),
    ("is_admin", "admin"),
    ("can_push", "push"),
)


def _format_fact(value: object) -> str:
    """Format a tri-state fact, keeping undetermined distinct from false."""
    if value is msgspec.UNSET:
        return _UNDETERMINED
    if isinstance(value, bool):
        return "yes" if value else "no"
    if isinstance(value, tuple):
        return ", ".join(str(item) for item in value) or "(none)"
    return str(value)


def _render_gaps(lines: list[str], report: CapabilityReport) -> None:
    lines.append("## Gaps")
    lines.append("")
    if not report.gaps:
        lines.append("No capability gaps.")
    for gap in report.gaps:
        lines.append(f"- **{gap.capability}**: {gap.reason}")
        lines.append(f"  - {gap.recommendation}")
    lines.append("")


def _render_context(
    lines: list[str], context: CapabilityContext, branch: str | None
) -> None:
    facts = (
        ("Default branch", context.default_branch),
        ("Visibility", context.visibility),
        ("Usable tokens", context.usable_tokens),
        ("Auto-merge enabled", context.auto_merge_enabled),
        ("Squash merge allowed", context.allow_squash_merge),
        ("Required status checks", context.required_status_checks_enabled),
        ("Status check contexts", context.required_status_check_contexts),
        ("Required approvals", context.required_approvals),
        ("Pull request required", context.pr_required),
    )
    lines.append("## Repository")
    lines.append("")
    if branch:
        lines.append(f"- Target branch: {branch}")
    lines.append(f"- Branch protection: {context.branch_protection}")
    lines.extend(f"- {label}: {_format_fact(value)}" for label, value in facts)
    lines.append("")


def _matrix_row(token: TokenCapabilities) -> str:
    cells = [token.token]
    cells.extend(_format_fact(getattr(token, attr)) for attr, _ in _MATRIX_COLUMNS)
    return "| " + " | ".join(cells) + " |"


def _render_matrix(lines: list[str], report: CapabilityReport) -> None:
    if not report.token_matrix:
        return
    header = ["token", *(label for _, label in _MATRIX_COLUMNS)]
    lines.append("## Tokens")
    lines.append("")
    lines.append("| " + " | ".join(header) + " |")
    lines.append("|" + "---|" * len(header))
    lines.extend(_matrix_row(token) for token in report.token_matrix.values())
    lines.append("")


def _render_minimums(lines: list[str], report: CapabilityReport) -> None:
    minimums = report.capability_minimum_tokens
    if minimums is msgspec.UNSET:
        return
    lines.append("## Minimum tokens")
    lines.append("")
    if not minimums:
        lines.append("No capability is satisfied by any token.")
    lines.extend(
        f"- {capability}: {', '.join(tokens)}"
        for capability, tokens in minimums.items()
    )
    lines.append("")


def render_report_markdown(
    report: CapabilityReport,
    *,
    title: str | None = None,
    branch: str | None = None,
) -> str:
    """Render a capability report as a Markdown summary.

    Parameters
    ----------
    report
        The assessed report.
    title
        Optional subject, such as the repository slug or fixture directory.
    branch
        Branch the protection facts were read from, when it was chosen
        explicitly rather than taken from the repository default.

    Returns
    -------
    str
        Markdown with gap, repository, token and minimum-token sections.
        Undetermined facts are written as ``undetermined``, never ``no``.

    """
    heading = "# Release capability report"
    lines: list[str] = [f"{heading}: {title}" if title else heading, ""]
    _render_gaps(lines, report)
    _render_context(lines, report.context, branch)
    _render_matrix(lines, report)
    _render_minimums(lines, report)
    return "\n".join(lines)
