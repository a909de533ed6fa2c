"""Step-specific shapes decoded from GitHub REST responses.

Each probe step has its own payload type so the classifiers never reach into
untyped JSON. Decoding is lenient about missing fields (GitHub omits several
repository settings for tokens without push access) but strict about shape:
a body that does not fit its step decodes to ``None`` and is treated as
unreadable evidence.
"""

from __future__ import annotations

import collections.abc as cabc
import typing as typ

import msgspec

from .steps import HTTP_OK, Step

RULE_REQUIRED_STATUS_CHECKS = "required_status_checks"
RULE_PULL_REQUEST = "pull_request"


class RepoPermissions(msgspec.Struct, kw_only=True, frozen=True):
    """Permission flags GitHub embeds in repository metadata for the caller."""

    admin: bool = False
    maintain: bool = False
    push: bool = False
    triage: bool = False
    pull: bool = False


class RepoMetadata(msgspec.Struct, kw_only=True, frozen=True):
    """Repository settings from ``GET /repos/{owner}/{repo}``.

    Attributes
    ----------
    default_branch
        Name of the default branch.
    private
        Whether the repository is private.
    allow_auto_merge
        Repository auto-merge setting, when visible to the caller.
    allow_squash_merge
        Repository squash-merge setting, when visible to the caller.
    permissions
        The caller's permissions on the repository, when reported.

    """

    default_branch: str | None = None
    private: bool | None = None
    allow_auto_merge: bool | None = None
    allow_squash_merge: bool | None = None
    permissions: RepoPermissions | None = None


class ClassicStatusChecks(msgspec.Struct, kw_only=True, frozen=True):
    """``required_status_checks`` block of classic branch protection."""

    contexts: list[str] = msgspec.field(default_factory=list)
    strict: bool | None = None


class ClassicReviews(msgspec.Struct, kw_only=True, frozen=True):
    """``required_pull_request_reviews`` block of classic branch protection."""

    required_approving_review_count: int | None = None


class ClassicProtection(msgspec.Struct, kw_only=True, frozen=True):
    """Classic protection from ``GET /branches/{branch}/protection``."""

    required_status_checks: ClassicStatusChecks | None = None
    required_pull_request_reviews: ClassicReviews | None = None


class RequiredStatusChecksRule(msgspec.Struct, kw_only=True, frozen=True):
    """Ruleset rule requiring named status checks to pass."""

    contexts: tuple[str, ...] = ()


class PullRequestRule(msgspec.Struct, kw_only=True, frozen=True):
    """Ruleset rule requiring changes to arrive through a pull request."""

    required_approving_review_count: int | None = None


class OtherRule(msgspec.Struct, kw_only=True, frozen=True):
    """Any ruleset rule the classifier does not inspect."""

    type: str


BranchRule = RequiredStatusChecksRule | PullRequestRule | OtherRule


class BranchRules(msgspec.Struct, kw_only=True, frozen=True):
    """Active rules from ``GET /rules/branches/{branch}``."""

    rules: tuple[BranchRule, ...] = ()

    @property
    def status_check_rule(self) -> RequiredStatusChecksRule | None:
        """Return the first required-status-checks rule, if any."""
        for rule in self.rules:
            if isinstance(rule, RequiredStatusChecksRule):
                return rule
        return None

    @property
    def pull_request_rule(self) -> PullRequestRule | None:
        """Return the first pull-request rule, if any."""
        for rule in self.rules:
            if isinstance(rule, PullRequestRule):
                return rule
        return None


class BranchCommit(msgspec.Struct, kw_only=True, frozen=True):
    """Head commit reference of a branch."""

    sha: str | None = None


class BranchMetadata(msgspec.Struct, kw_only=True, frozen=True):
    """Branch details from ``GET /branches/{branch}``."""

    name: str | None = None
    protected: bool | None = None
    commit: BranchCommit | None = None


class CollaboratorPermission(msgspec.Struct, kw_only=True, frozen=True):
    """Collaborator permission from ``GET /collaborators/{user}/permission``."""

    permission: str | None = None
    role_name: str | None = None


class BranchSummary(msgspec.Struct, kw_only=True, frozen=True):
    """One entry of the branch listing."""

    name: str
    protected: bool | None = None


class BranchList(msgspec.Struct, kw_only=True, frozen=True):
    """Branch listing from ``GET /branches``."""

    branches: tuple[BranchSummary, ...] = ()


StepPayload = (
    RepoMetadata
    | ClassicProtection
    | BranchRules
    | BranchMetadata
    | CollaboratorPermission
    | BranchList
)


# Wire shape of a ruleset rule before it is narrowed to a typed variant.
class _RuleEnvelope(msgspec.Struct, kw_only=True, frozen=True):
    type: str
    parameters: dict[str, typ.Any] | None = None


class _StatusCheckConfig(msgspec.Struct, kw_only=True, frozen=True):
    context: str | None = None


class _StatusCheckParameters(msgspec.Struct, kw_only=True, frozen=True):
    required_status_checks: list[_StatusCheckConfig] = msgspec.field(
        default_factory=list
    )


class _PullRequestParameters(msgspec.Struct, kw_only=True, frozen=True):
    required_approving_review_count: int | None = None


def _narrow_rule(envelope: _RuleEnvelope) -> BranchRule:
    parameters = envelope.parameters or {}
    if envelope.type == RULE_REQUIRED_STATUS_CHECKS:
        checks = msgspec.convert(parameters, type=_StatusCheckParameters)
        return RequiredStatusChecksRule(
            contexts=tuple(
                check.context
                for check in checks.required_status_checks
                if check.context
            )
        )
    if envelope.type == RULE_PULL_REQUEST:
        pr = msgspec.convert(parameters, type=_PullRequestParameters)
        return PullRequestRule(
            required_approving_review_count=pr.required_approving_review_count
        )
    return OtherRule(type=envelope.type)


def _decode_rules(data: object) -> BranchRules:
    envelopes = msgspec.convert(data, type=list[_RuleEnvelope])
    return BranchRules(rules=tuple(_narrow_rule(envelope) for envelope in envelopes))


def _decode_branch_list(data: object) -> BranchList:
    return BranchList(branches=tuple(msgspec.convert(data, type=list[BranchSummary])))


_OBJECT_PAYLOADS: dict[Step, type[StepPayload]] = {
    Step.REPO_METADATA: RepoMetadata,
    Step.CLASSIC_PROTECTION: ClassicProtection,
    Step.BRANCH_METADATA: BranchMetadata,
    Step.COLLABORATOR_PERMISSION: CollaboratorPermission,
}

_LIST_DECODERS: dict[Step, cabc.Callable[[object], StepPayload]] = {
    Step.RULES_PROTECTION: _decode_rules,
    Step.BRANCH_LIST: _decode_branch_list,
}


def decode_payload(
    step: Step, status_code: int | None, data: object
) -> StepPayload | None:
    """Decode a response body into the payload type for ``step``.

    Parameters
    ----------
    step
        Probe the body was returned for.
    status_code
        HTTP status of the response. Only successful responses carry a
        payload; error bodies such as ``{"message": "Not Found"}`` are
        discarded.
    data
        Parsed JSON body.

    Returns
    -------
    StepPayload | None
        The decoded payload, or ``None`` when the response was not a success
        or the body does not match the step's shape.

    """
    if status_code != HTTP_OK:
        return None

    try:
        if step in _LIST_DECODERS:
            if not isinstance(data, list):
                return None
            return _LIST_DECODERS[step](data)
        if not isinstance(data, dict):
            return None
        return msgspec.convert(data, type=_OBJECT_PAYLOADS[step])
    except msgspec.ValidationError:
        return None
