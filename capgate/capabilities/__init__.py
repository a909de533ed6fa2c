"""Capability classification engine and report assembly."""

from __future__ import annotations

from .assembler import (
    assemble_report,
    build_context,
    repository_facts,
    short_circuit_report,
)
from .gaps import (
    ALLOW_SQUASH_MERGE_GAP,
    DEFAULT_POLICY,
    LIVE_MODE_GAP,
    USABLE_TOKEN_GAP,
    CapabilityPolicy,
    report_gaps,
    usable_tokens,
)
from .matrix import build_token_capabilities, build_token_matrix
from .minimums import (
    PrivilegeRank,
    derive_capability_minimums,
    least_privileged_first,
    privilege_rank,
)
from .models import (
    BranchProtectionFacts,
    Capability,
    CapabilityContext,
    CapabilityGap,
    CapabilityReport,
    ProtectionClassification,
    RepositoryFacts,
    TokenCapabilities,
    encode_report,
)
from .policy import PolicyValidationError, load_policy
from .protection import (
    MechanismState,
    classify_evidence,
    classify_protection,
    combine,
    detect_classic,
    detect_rules,
)
from .render import render_report_markdown
from .service import assess_evidence, assess_fixture_dir, assess_live

__all__ = [
    "ALLOW_SQUASH_MERGE_GAP",
    "DEFAULT_POLICY",
    "LIVE_MODE_GAP",
    "USABLE_TOKEN_GAP",
    "BranchProtectionFacts",
    "Capability",
    "CapabilityContext",
    "CapabilityGap",
    "CapabilityPolicy",
    "CapabilityReport",
    "MechanismState",
    "PolicyValidationError",
    "PrivilegeRank",
    "ProtectionClassification",
    "RepositoryFacts",
    "TokenCapabilities",
    "assemble_report",
    "assess_evidence",
    "assess_fixture_dir",
    "assess_live",
    "build_context",
    "build_token_capabilities",
    "build_token_matrix",
    "classify_evidence",
    "classify_protection",
    "combine",
    "derive_capability_minimums",
    "detect_classic",
    "detect_rules",
    "encode_report",
    "least_privileged_first",
    "load_policy",
    "privilege_rank",
    "render_report_markdown",
    "report_gaps",
    "repository_facts",
    "short_circuit_report",
    "usable_tokens",
]
