"""Probe evidence gathered per token, from fixtures or live API calls."""

from __future__ import annotations

from .errors import FixtureFormatError
from .fixtures import (
    load_fixture_evidence,
    load_fixture_file,
    load_fixture_table,
    write_fixture_table,
)
from .models import (
    SKIPPED,
    AssessmentEvidence,
    EvidenceRecord,
    ProbeSkipped,
    RawEntry,
    RawEvidence,
    RawEvidenceTable,
    TokenEvidenceBuilder,
    TokenEvidenceSet,
)
from .payloads import (
    BranchList,
    BranchMetadata,
    BranchRules,
    ClassicProtection,
    CollaboratorPermission,
    OtherRule,
    PullRequestRule,
    RepoMetadata,
    RepoPermissions,
    RequiredStatusChecksRule,
    StepPayload,
    decode_payload,
)
from .steps import Step, step_for_filename

__all__ = [
    "SKIPPED",
    "AssessmentEvidence",
    "BranchList",
    "BranchMetadata",
    "BranchRules",
    "ClassicProtection",
    "CollaboratorPermission",
    "EvidenceRecord",
    "FixtureFormatError",
    "OtherRule",
    "ProbeSkipped",
    "PullRequestRule",
    "RawEntry",
    "RawEvidence",
    "RawEvidenceTable",
    "RepoMetadata",
    "RepoPermissions",
    "RequiredStatusChecksRule",
    "Step",
    "StepPayload",
    "TokenEvidenceBuilder",
    "TokenEvidenceSet",
    "decode_payload",
    "load_fixture_evidence",
    "load_fixture_file",
    "load_fixture_table",
    "step_for_filename",
    "write_fixture_table",
]
