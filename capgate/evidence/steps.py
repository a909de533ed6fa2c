"""Probe steps and the HTTP status codes the engine reasons about."""

from __future__ import annotations

import dataclasses
import enum

HTTP_OK = 200
HTTP_UNAUTHORIZED = 401
HTTP_NOT_FOUND = 404

# Status code recorded when a probe never produced an HTTP response.
TRANSPORT_FAILURE_STATUS = 0


class Step(enum.StrEnum):
    """Logical probes run against the repository for every token."""

    REPO_METADATA = "repo-metadata"
    CLASSIC_PROTECTION = "classic-protection"
    RULES_PROTECTION = "rules-protection"
    BRANCH_METADATA = "branch-metadata"
    COLLABORATOR_PERMISSION = "collaborator-permission"
    BRANCH_LIST = "branch-list"

    @property
    def fixture_stem(self) -> str:
        """Return the file stem used when recording this step."""
        return _STEP_SPECS[self].fixture_stem

    @property
    def markers(self) -> tuple[str, ...]:
        """Return filename substrings that identify this step."""
        return _STEP_SPECS[self].markers

    def path_for(self, *, owner: str, branch: str) -> str:
        """Return the REST path, relative to the repository resource."""
        return _STEP_SPECS[self].path_template.format(owner=owner, branch=branch)


@dataclasses.dataclass(frozen=True, slots=True)
class _StepSpec:
    fixture_stem: str
    markers: tuple[str, ...]
    path_template: str


_STEP_SPECS: dict[Step, _StepSpec] = {
    Step.REPO_METADATA: _StepSpec(
        fixture_stem="step1_main_branch",
        markers=("main_branch", "repo_metadata"),
        path_template="",
    ),
    Step.CLASSIC_PROTECTION: _StepSpec(
        fixture_stem="step2_classic_protection",
        markers=("classic_protection",),
        path_template="/branches/{branch}/protection",
    ),
    Step.RULES_PROTECTION: _StepSpec(
        fixture_stem="step3_rules_protection",
        markers=("rules_protection",),
        path_template="/rules/branches/{branch}",
    ),
    Step.BRANCH_METADATA: _StepSpec(
        fixture_stem="step4_branch_metadata",
        markers=("branch_metadata",),
        path_template="/branches/{branch}",
    ),
    Step.COLLABORATOR_PERMISSION: _StepSpec(
        fixture_stem="step5_permissions_info",
        markers=("permissions_info", "collaborator_permission"),
        path_template="/collaborators/{owner}/permission",
    ),
    Step.BRANCH_LIST: _StepSpec(
        fixture_stem="step6_branch_list",
        markers=("branch_list",),
        path_template="/branches?per_page=100",
    ),
}


def step_for_filename(filename: str) -> Step | None:
    """Identify the step a recorded file belongs to, if any."""
    lowered = filename.lower()
    for step in Step:
        if any(marker in lowered for marker in step.markers):
            return step
    return None
