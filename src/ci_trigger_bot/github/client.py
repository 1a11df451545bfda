"""GitHub API client wrapper.

Wraps PyGithub so the comment webhook only sees the one lookup it needs and
tests can inject a fake repository.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import requests
from github import Auth, Github, GithubException
from github.Repository import Repository

from ci_trigger_bot.errors import PullRequestLookupError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PullRequestHead:
    """The branch a pull request builds from."""

    number: int
    state: str
    head_ref: str
    head_sha: str


class GitHubClient:
    """Read-only pull request lookups for one repository."""

    def __init__(
        self,
        *,
        token: str,
        repository: str,
        base_url: str = "https://api.github.com",
        timeout_seconds: float = 30.0,
        repo: Repository | None = None,
        github_api: Github | None = None,
    ) -> None:
        if not token:
            raise ValueError("GitHub token is required")
        if not repository:
            raise ValueError("GitHub repository is required")

        self._repository_name = repository.strip().strip("/")

        if repo is not None:
            self._repo = repo
            self._github = None
            logger.debug("Using injected Repository instance")
            return

        auth = Auth.Token(token)
        self._github = github_api or Github(
            auth=auth, base_url=base_url.rstrip("/"), timeout=int(timeout_seconds)
        )
        # Lazy: no request is made until the first attribute access.
        self._repo = self._github.get_repo(self._repository_name, lazy=True)

    @property
    def repository(self) -> str:
        """Return the configured repository name ("owner/repo")."""

        return self._repository_name

    def get_pull_request_head(self, pull_number: int) -> PullRequestHead:
        """Look up the head branch of a pull request.

        Comments on plain issues share the issue-comment webhook; their numbers
        have no pull request and raise :class:`PullRequestLookupError`.
        """

        if pull_number <= 0:
            raise ValueError("pull_number must be a positive integer")

        logger.debug(
            "Fetching pull request",
            extra={"repo": self._repository_name, "pull_number": pull_number},
        )
        try:
            pr = self._repo.get_pull(pull_number)
            return PullRequestHead(
                number=pr.number,
                state=pr.state,
                head_ref=pr.head.ref,
                head_sha=pr.head.sha,
            )
        except GithubException as e:
            raise PullRequestLookupError(
                f"Could not load pull request #{pull_number} in {self._repository_name}: "
                f"HTTP {e.status}"
            ) from e
        except requests.RequestException as e:
            raise PullRequestLookupError(
                f"Could not load pull request #{pull_number} in {self._repository_name}: {e}"
            ) from e

    def close(self) -> None:
        if self._github is not None:
            self._github.close()
