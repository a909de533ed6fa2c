"""Unit tests for the recorded fixture evidence source."""

from __future__ import annotations

import typing as typ

import msgspec
import pytest

from capgate.evidence import (
    SKIPPED,
    FixtureFormatError,
    RawEvidence,
    Step,
    load_fixture_evidence,
    load_fixture_file,
    load_fixture_table,
    write_fixture_table,
)
from capgate.evidence import fixtures as fixtures_module
from tests.helpers.evidence_builders import (
    repo_metadata,
    response,
    table_from_tokens,
    token_steps,
    write_fixture_dir,
)

if typ.TYPE_CHECKING:
    from pathlib import Path


class _FakeLogger:
    """Collects log calls for assertions."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str]] = []

    def log(
        self,
        level: str,
        message: str,
        /,
        *,
        exc_info: object | None = None,
        stack_info: bool = False,
    ) -> str:
        self.calls.append((level, message))
        return message


def _write_json(path: Path, body: object) -> Path:
    path.write_bytes(msgspec.json.encode(body))
    return path


def test_load_fixture_file_decodes_entry_variants(tmp_path: Path) -> None:
    """Records, skip markers and captured errors all load."""
    path = _write_json(
        tmp_path / "step1_main_branch.json",
        {
            "PAT_ADMIN": {
                "endpoint": "https://api.github.com/repos/octo/widget",
                "status_code": 200,
                "ok": True,
                "data": repo_metadata(admin=True),
            },
            "PAT_EMPTY": {"skipped": True},
            "PAT_OFFLINE": {"error": "getaddrinfo ENOTFOUND api.github.com"},
        },
    )

    entries = load_fixture_file(path)

    admin = entries["PAT_ADMIN"]
    assert isinstance(admin, RawEvidence)
    assert admin.status_code == 200
    assert entries["PAT_EMPTY"] is SKIPPED
    offline = entries["PAT_OFFLINE"]
    assert isinstance(offline, RawEvidence)
    assert offline.status_code == 0
    assert offline.data == {"error": "getaddrinfo ENOTFOUND api.github.com"}


def test_load_fixture_file_accepts_minimal_records(tmp_path: Path) -> None:
    """Only the status code and body are needed for a record."""
    path = _write_json(
        tmp_path / "step6_branch_list.json",
        {"PAT_MIN": {"status_code": 403, "data": {"message": "Forbidden"}}},
    )

    entry = load_fixture_file(path)["PAT_MIN"]

    assert isinstance(entry, RawEvidence)
    assert entry.endpoint is None
    assert entry.ok is False


@pytest.mark.parametrize(
    ("content", "fragment"),
    [
        (b"{not json", "not valid JSON"),
        (b"[1, 2]", "must map token names"),
        (b'{"PAT_MIN": 3}', "is malformed"),
        (b'{"PAT_MIN": {"status_code": "200"}}', "is malformed"),
    ],
)
def test_load_fixture_file_rejects_malformed_files(
    tmp_path: Path, content: bytes, fragment: str
) -> None:
    """Structurally malformed fixtures raise immediately."""
    path = tmp_path / "step2_classic_protection.json"
    path.write_bytes(content)

    with pytest.raises(FixtureFormatError, match=fragment):
        load_fixture_file(path)


def test_load_fixture_table_ignores_unrecognised_files(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Files matching no step are skipped with a warning."""
    fake_logger = _FakeLogger()
    monkeypatch.setattr(fixtures_module, "logger", fake_logger)
    write_fixture_dir(tmp_path, {"PAT_MIN": token_steps()})
    _write_json(tmp_path / "step7_commit_status.json", {"PAT_MIN": {}})

    table = load_fixture_table(tmp_path)

    assert set(table) == set(Step)
    assert fake_logger.calls == [
        (
            "WARNING",
            f"[fixture.ignored] directory={tmp_path} "
            "file=step7_commit_status.json reason=unrecognised_step",
        )
    ]


def test_load_fixture_table_rejects_duplicate_steps(tmp_path: Path) -> None:
    """Two files recording the same step are an error, not a merge."""
    _write_json(tmp_path / "a_branch_list.json", {"PAT_MIN": {"status_code": 200}})
    _write_json(tmp_path / "b_branch_list.json", {"PAT_MIN": {"status_code": 200}})

    with pytest.raises(FixtureFormatError, match="both record step branch-list"):
        load_fixture_table(tmp_path)


def test_load_fixture_table_requires_directory(tmp_path: Path) -> None:
    """A missing fixture directory raises."""
    with pytest.raises(FixtureFormatError, match="fixture directory not found"):
        load_fixture_table(tmp_path / "missing")


def test_write_fixture_table_is_readable_by_loader(tmp_path: Path) -> None:
    """Captured tables load back to the same entries."""
    table = table_from_tokens(
        {
            "PAT_MIN": token_steps(),
            "PAT_BAD": {
                Step.REPO_METADATA: RawEvidence.transport_failure(
                    "https://api.github.com/repos/octo/widget", "timed out"
                ),
            },
        }
    )

    written = write_fixture_table(table, tmp_path / "capture")

    assert [path.name for path in written] == [
        f"{step.fixture_stem}.json" for step in Step
    ]
    assert load_fixture_table(tmp_path / "capture") == table


def test_load_fixture_evidence_builds_token_sets(tmp_path: Path) -> None:
    """Fixture directories load straight into assessment evidence."""
    write_fixture_dir(
        tmp_path,
        {
            "PAT_MIN": token_steps(),
            "PAT_ADMIN": {Step.REPO_METADATA: response(200, repo_metadata())},
        },
    )

    evidence = load_fixture_evidence(tmp_path)

    assert set(evidence.token_names) == {"PAT_MIN", "PAT_ADMIN"}
    admin = next(item for item in evidence.tokens if item.token == "PAT_ADMIN")
    assert admin.get(Step.BRANCH_LIST) is None
