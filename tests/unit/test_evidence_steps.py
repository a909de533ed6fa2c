"""Unit tests for probe step identification."""

from __future__ import annotations

import pytest

from capgate.evidence import Step, step_for_filename


@pytest.mark.parametrize(
    ("filename", "expected"),
    [
        ("step1_main_branch.json", Step.REPO_METADATA),
        ("PAT_MIN_repo_metadata.json", Step.REPO_METADATA),
        ("step2_classic_protection.json", Step.CLASSIC_PROTECTION),
        ("03-rules_protection.json", Step.RULES_PROTECTION),
        ("STEP4_BRANCH_METADATA.json", Step.BRANCH_METADATA),
        ("step5_permissions_info.json", Step.COLLABORATOR_PERMISSION),
        ("collaborator_permission.json", Step.COLLABORATOR_PERMISSION),
        ("step6_branch_list.json", Step.BRANCH_LIST),
    ],
)
def test_step_for_filename_recognises_markers(filename: str, expected: Step) -> None:
    """Steps are identified by filename substrings, not position."""
    assert step_for_filename(filename) is expected, (
        f"Expected {filename} to be recognised as {expected}."
    )


def test_step_for_filename_ignores_unknown_files() -> None:
    """Files without a step marker are not attributed to any step."""
    assert step_for_filename("step7_commit_status.json") is None


def test_fixture_stems_round_trip_through_recognition() -> None:
    """Every written fixture name is recognised as its own step."""
    for step in Step:
        assert step_for_filename(f"{step.fixture_stem}.json") is step, (
            f"Expected the fixture stem of {step} to identify it."
        )


@pytest.mark.parametrize(
    ("step", "expected"),
    [
        (Step.REPO_METADATA, ""),
        (Step.CLASSIC_PROTECTION, "/branches/release/protection"),
        (Step.RULES_PROTECTION, "/rules/branches/release"),
        (Step.BRANCH_METADATA, "/branches/release"),
        (Step.COLLABORATOR_PERMISSION, "/collaborators/octo/permission"),
        (Step.BRANCH_LIST, "/branches?per_page=100"),
    ],
)
def test_path_for_targets_branch_and_owner(step: Step, expected: str) -> None:
    """REST paths are built relative to the repository resource."""
    assert step.path_for(owner="octo", branch="release") == expected
