"""Reconcile classic and ruleset branch protection evidence.

Two independent mechanisms can protect a branch. Each is first detected on
its own as present, absent or unreadable from every token's read of it, and
the two states are then combined by a fixed precedence:

``classic+rules`` > ``classic`` > ``rules`` > ``none`` > ``unknown``

Absence must be proven. A 401, 403 or transport failure says nothing about
whether protection exists, so such responses never count towards ``none``.
"""

from __future__ import annotations

import dataclasses
import enum
import typing as typ

import msgspec

from capgate.evidence import BranchRules, ClassicProtection, Step
from capgate.evidence.steps import HTTP_NOT_FOUND, HTTP_OK
from capgate.logging import get_logger, log_debug

from .models import BranchProtectionFacts, ProtectionClassification

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from capgate.evidence import AssessmentEvidence, EvidenceRecord

logger = get_logger(__name__)


class MechanismState(enum.StrEnum):
    """Outcome of probing one protection mechanism across all tokens."""

    PRESENT = "present"
    ABSENT = "absent"
    UNREADABLE = "unreadable"


@dataclasses.dataclass(frozen=True, slots=True)
class MechanismDetection:
    """Detected state plus the record that proved presence, if any."""

    state: MechanismState
    source: EvidenceRecord | None = None


def _rules_payload(record: EvidenceRecord) -> BranchRules | None:
    payload = record.payload
    return payload if isinstance(payload, BranchRules) else None


def detect_classic(records: cabc.Sequence[EvidenceRecord]) -> MechanismDetection:
    """Detect classic protection from every token's classic read.

    Any 200 proves presence, even when the body could not be decoded. The
    source is the first 200 whose body decoded, falling back to the first 200
    when none did. Without a 200, a single 404 proves absence; anything else
    leaves the mechanism unreadable.
    """
    successes = [record for record in records if record.has_status(HTTP_OK)]
    if successes:
        source = next(
            (
                record
                for record in successes
                if isinstance(record.payload, ClassicProtection)
            ),
            successes[0],
        )
        return MechanismDetection(MechanismState.PRESENT, source)
    if any(record.has_status(HTTP_NOT_FOUND) for record in records):
        return MechanismDetection(MechanismState.ABSENT)
    return MechanismDetection(MechanismState.UNREADABLE)


def detect_rules(records: cabc.Sequence[EvidenceRecord]) -> MechanismDetection:
    """Detect ruleset protection from every token's rules read.

    A 200 carrying at least one rule proves presence. A 200 with an empty
    rule array, or a 404, proves absence. A 200 whose body is not a rule
    array is as uninformative as a 403.
    """
    conclusive_absence = False
    for record in records:
        if record.has_status(HTTP_NOT_FOUND):
            conclusive_absence = True
            continue
        if not record.has_status(HTTP_OK):
            continue
        rules = _rules_payload(record)
        if rules is None:
            continue
        if rules.rules:
            return MechanismDetection(MechanismState.PRESENT, record)
        conclusive_absence = True
    if conclusive_absence:
        return MechanismDetection(MechanismState.ABSENT)
    return MechanismDetection(MechanismState.UNREADABLE)


def combine(
    classic: MechanismState, rules: MechanismState
) -> ProtectionClassification:
    """Combine the two mechanism states into one classification.

    An unreadable classic mechanism keeps the result at ``unknown`` even when
    rules are conclusively absent: classic protection may still exist.
    """
    classic_present = classic is MechanismState.PRESENT
    rules_present = rules is MechanismState.PRESENT
    if classic_present and rules_present:
        return ProtectionClassification.CLASSIC_AND_RULES
    if classic_present:
        return ProtectionClassification.CLASSIC
    if rules_present:
        return ProtectionClassification.RULES
    if classic is MechanismState.ABSENT and rules is MechanismState.ABSENT:
        return ProtectionClassification.NONE
    return ProtectionClassification.UNKNOWN


def _classic_facts(
    classification: ProtectionClassification, record: EvidenceRecord
) -> BranchProtectionFacts:
    payload = record.payload
    if not isinstance(payload, ClassicProtection):
        return BranchProtectionFacts(classification=classification)

    checks = payload.required_status_checks
    contexts = tuple(checks.contexts) if checks is not None else ()
    reviews = payload.required_pull_request_reviews
    approvals: int | msgspec.UnsetType = msgspec.UNSET
    if reviews is not None and reviews.required_approving_review_count is not None:
        approvals = reviews.required_approving_review_count
    return BranchProtectionFacts(
        classification=classification,
        required_status_checks_enabled=bool(contexts),
        required_status_check_contexts=contexts,
        required_approvals=approvals,
        pr_required=reviews is not None,
    )


def _rules_facts(
    classification: ProtectionClassification, record: EvidenceRecord
) -> BranchProtectionFacts:
    rules = _rules_payload(record)
    if rules is None:
        return BranchProtectionFacts(classification=classification)

    status_rule = rules.status_check_rule
    contexts = status_rule.contexts if status_rule is not None else ()
    pr_rule = rules.pull_request_rule
    approvals: int | msgspec.UnsetType = msgspec.UNSET
    if pr_rule is not None and pr_rule.required_approving_review_count is not None:
        approvals = pr_rule.required_approving_review_count
    return BranchProtectionFacts(
        classification=classification,
        required_status_checks_enabled=bool(contexts),
        required_status_check_contexts=contexts,
        required_approvals=approvals,
        pr_required=pr_rule is not None,
    )


def _normalise_absent(facts: BranchProtectionFacts) -> BranchProtectionFacts:
    """Replace undetermined sub-facts with their conclusive absent values."""
    return msgspec.structs.replace(
        facts,
        required_status_checks_enabled=(
            False
            if facts.required_status_checks_enabled is msgspec.UNSET
            else facts.required_status_checks_enabled
        ),
        required_status_check_contexts=(
            ()
            if facts.required_status_check_contexts is msgspec.UNSET
            else facts.required_status_check_contexts
        ),
        pr_required=False if facts.pr_required is msgspec.UNSET else facts.pr_required,
    )


def classify_protection(
    classic_records: cabc.Sequence[EvidenceRecord],
    rules_records: cabc.Sequence[EvidenceRecord],
) -> BranchProtectionFacts:
    """Classify branch protection from per-token classic and rules reads.

    Parameters
    ----------
    classic_records
        Observed classic protection reads, one per token, in token order.
    rules_records
        Observed ruleset reads, one per token, in token order.

    Returns
    -------
    BranchProtectionFacts
        The classification with its sub-facts. Classic sub-facts win whenever
        classic protection is present; rules only upgrade the classification
        to ``classic+rules`` in that case.

    """
    classic = detect_classic(classic_records)
    rules = detect_rules(rules_records)
    classification = combine(classic.state, rules.state)

    if classic.source is not None:
        facts = _classic_facts(classification, classic.source)
    elif rules.source is not None:
        facts = _rules_facts(classification, rules.source)
    else:
        facts = BranchProtectionFacts(classification=classification)

    if classification is ProtectionClassification.NONE:
        facts = _normalise_absent(facts)

    log_debug(
        logger,
        "[protection.classified] classic=%s rules=%s classification=%s",
        classic.state,
        rules.state,
        classification,
    )
    return facts


def classify_evidence(evidence: AssessmentEvidence) -> BranchProtectionFacts:
    """Classify branch protection from a full assessment evidence set."""
    return classify_protection(
        evidence.records_for(Step.CLASSIC_PROTECTION),
        evidence.records_for(Step.RULES_PROTECTION),
    )
