"""GitHub probing errors."""

from __future__ import annotations


class GitHubConfigError(RuntimeError):
    """Raised when GitHub probing is configured incorrectly."""

    @classmethod
    def empty_token(cls, name: str) -> GitHubConfigError:
        """Return an error when a credential carries no token value."""
        return cls(f"GitHub token {name} must be non-empty")

    @classmethod
    def missing_repository(cls) -> GitHubConfigError:
        """Return an error when no target repository is configured."""
        return cls("SAR_REPO (owner/repo) is required for live probing")

    @classmethod
    def missing_credentials(cls) -> GitHubConfigError:
        """Return an error when no credential is configured."""
        return cls("No token env vars matching GH_TOKEN, PAT_* or GITHUB_TOKEN found")
