"""Command-line entry points for capability assessment and fixture capture.

Usage:
    capgate assess --fixture-dir fixtures/widget
    SAR_REPO=octo/widget PAT_MIN=... capgate assess --json-out report.json
    SAR_REPO=octo/widget PAT_MIN=... capgate capture --output fixtures/widget

Environment variables:
    SAR_REPO            - Target repository (owner/repo) for live mode
    SAR_TOKENS          - Comma-separated token variable names to use (or TOKENS)
    SAR_BRANCH          - Branch to probe instead of the default branch (or BRANCH)
    CAPGATE_LOG_LEVEL   - Log level (default: INFO)
"""

from __future__ import annotations

import asyncio
import sys
import typing as typ
from pathlib import Path

import msgspec
from cyclopts import App, Parameter

from capgate.capabilities import (
    DEFAULT_POLICY,
    PolicyValidationError,
    assess_fixture_dir,
    assess_live,
    encode_report,
    load_policy,
    render_report_markdown,
)
from capgate.capture import capture_fixtures
from capgate.config import AssessmentConfig
from capgate.evidence import FixtureFormatError
from capgate.github import GitHubConfigError
from capgate.logging import (
    LOG_LEVEL_ENV_VAR,
    configure_logging,
    get_logger,
    log_error,
    log_warning,
)

if typ.TYPE_CHECKING:
    from capgate.capabilities import CapabilityPolicy, CapabilityReport

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_GAPS = 1
EXIT_ERROR = 2

app = App(
    name="capgate",
    help="Gate release automation on token capabilities and branch protection",
    version="0.1.0",
)


def _configure(log_level: str | None) -> None:
    level, invalid = configure_logging(log_level)
    if invalid:
        log_warning(
            logger,
            "[logging.invalid_level] value=%s fallback=%s",
            log_level,
            level,
        )


def _load_policy(path: Path | None) -> CapabilityPolicy:
    if path is None:
        return DEFAULT_POLICY
    return load_policy(path)


def _emit(
    report: CapabilityReport,
    *,
    title: str,
    json_out: Path | None,
    branch: str | None = None,
) -> int:
    print(render_report_markdown(report, title=title, branch=branch))
    if json_out is not None:
        json_out.parent.mkdir(parents=True, exist_ok=True)
        json_out.write_bytes(msgspec.json.format(encode_report(report), indent=2))
    return EXIT_GAPS if report.gaps else EXIT_OK


@app.command
def assess(
    *,
    fixture_dir: Path | None = None,
    policy: Path | None = None,
    json_out: Path | None = None,
    log_level: typ.Annotated[
        str | None, Parameter(env_var=LOG_LEVEL_ENV_VAR)
    ] = None,
) -> int:
    """Assess release capabilities and print a summary.

    Args:
        fixture_dir: Recorded fixture directory. Live mode when omitted.
        policy: YAML file overriding the capabilities a usable token needs.
        json_out: Path to write the JSON capability report to.
        log_level: Log level for diagnostic output.

    Returns:
        Exit code: 0 without gaps, 1 when gaps were found, 2 on bad input.

    """
    _configure(log_level)
    branch: str | None = None
    try:
        required = _load_policy(policy)
        if fixture_dir is not None:
            report = assess_fixture_dir(fixture_dir, policy=required)
            title = str(fixture_dir)
        else:
            config = AssessmentConfig.from_env()
            report = asyncio.run(assess_live(config, policy=required))
            title = config.repository.slug if config.repository else "live"
            branch = config.branch
    except (FixtureFormatError, PolicyValidationError, ValueError) as exc:
        log_error(logger, "[assess.failed] error=%s", exc)
        print(f"Assessment failed: {exc}", file=sys.stderr)
        return EXIT_ERROR
    return _emit(report, title=title, json_out=json_out, branch=branch)


@app.command
def capture(
    *,
    output: Path,
    log_level: typ.Annotated[
        str | None, Parameter(env_var=LOG_LEVEL_ENV_VAR)
    ] = None,
) -> int:
    """Probe the configured repository and record a fixture directory.

    Args:
        output: Directory to write one fixture file per probe step into.
        log_level: Log level for diagnostic output.

    Returns:
        Exit code: 0 on success, 2 when live mode is not configured.

    """
    _configure(log_level)
    try:
        config = AssessmentConfig.from_env()
        written = asyncio.run(capture_fixtures(config, output))
    except (GitHubConfigError, ValueError) as exc:
        log_error(logger, "[capture.failed] error=%s", exc)
        print(f"Capture failed: {exc}", file=sys.stderr)
        return EXIT_ERROR
    for path in written:
        print(f"Wrote {path}")
    return EXIT_OK


def main() -> int:
    """Entry point for the CLI."""
    return app()


if __name__ == "__main__":
    sys.exit(main())
