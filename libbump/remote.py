"""Remote repository contract.

Lets the workflow talk to any hosting provider (Bitbucket, GitHub, GitLab)
without knowing which one is behind it.
"""

from typing import Protocol

from .models import PullRequest, PullRequestCreate, RemoteBranch


class RemoteRepository(Protocol):
    """A repository on a remote hosting provider."""

    @property
    def main_branch(self) -> RemoteBranch:
        """The repository's default branch and its head commit."""
        ...

    async def create_branch(self, name: str, from_ref: str) -> RemoteBranch:
        """Create a branch pointing at commit ``from_ref``."""
        ...

    async def download_file_contents(self, path: str) -> str:
        """Fetch the raw text of ``path`` (relative to repo root) at the main branch head."""
        ...

    async def create_commit(
        self,
        message: str,
        files: dict[str, str],
        branch: RemoteBranch,
        author: str,
    ) -> None:
        """Create one commit on ``branch`` replacing each file path with its contents."""
        ...

    async def open_pull_request(self, pr_data: PullRequestCreate) -> PullRequest:
        """Open a pull request; the target defaults to the main branch."""
        ...
