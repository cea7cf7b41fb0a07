"""Bitbucket Cloud implementation of the remote repository contract."""

import logging

import httpx

from . import errors
from .models import PullRequest, PullRequestCreate, RemoteBranch

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.bitbucket.org/2.0"


class BitbucketApiClient:
    """Thin async wrapper over the Bitbucket HTTP API.

    See https://developer.atlassian.com/cloud/bitbucket/rest/intro
    """

    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize Bitbucket API client.

        Args:
            token: Repository access token
            base_url: Base URL of the Bitbucket API
            timeout: Request timeout in seconds, None disables it
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Authorization": f"Bearer {token}"},
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "BitbucketApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get_repo(self, workspace: str, repo_slug: str) -> dict:
        """Get repository info, including ``mainbranch.name``."""
        response = await self._request("GET", f"/repositories/{workspace}/{repo_slug}")
        return response.json()

    async def get_branch(self, workspace: str, repo_slug: str, branch_name: str) -> dict:
        """Get branch info, including ``target.hash``."""
        response = await self._request(
            "GET", f"/repositories/{workspace}/{repo_slug}/refs/branches/{branch_name}"
        )
        return response.json()

    async def create_branch(self, workspace: str, repo_slug: str, name: str, from_ref: str) -> dict:
        response = await self._request(
            "POST",
            f"/repositories/{workspace}/{repo_slug}/refs/branches",
            json={"name": name, "target": {"hash": from_ref}},
        )
        return response.json()

    async def get_file_contents(self, workspace: str, repo_slug: str, path: str, commit: str) -> str:
        """Download the raw contents of ``path`` as of ``commit``.

        Raises:
            AppError: FILE_NOT_FOUND if the file does not exist at that commit
        """
        try:
            response = await self._request(
                "GET", f"/repositories/{workspace}/{repo_slug}/src/{commit}/{path}"
            )
        except errors.AppError as e:
            if e.details.get("status") == 404:
                raise errors.file_not_found(path) from e
            raise
        return response.text

    async def create_file_commit(
        self,
        workspace: str,
        repo_slug: str,
        files: dict[str, str],
        message: str,
        author: str,
        branch: str,
    ) -> None:
        """Create a commit on ``branch`` from whole-file contents keyed by repo-relative path."""
        await self._request(
            "POST",
            f"/repositories/{workspace}/{repo_slug}/src",
            data={"message": message, "author": author, "branch": branch},
            files={path: (path, contents.encode("utf-8")) for path, contents in files.items()},
        )

    async def open_pull_request(
        self,
        workspace: str,
        repo_slug: str,
        title: str,
        source_branch: str,
        target_branch: str,
    ) -> dict:
        response = await self._request(
            "POST",
            f"/repositories/{workspace}/{repo_slug}/pullrequests",
            json={
                "title": title,
                "source": {"branch": {"name": source_branch}},
                "destination": {"branch": {"name": target_branch}},
            },
        )
        return response.json()

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        logger.debug("%s %s%s", method, self.base_url, url)
        response = await self._client.request(method, url, **kwargs)
        if response.is_error:
            raise errors.remote_request_failed(
                method, str(response.request.url), response.status_code, response.text
            )
        return response


class BitbucketRemoteRepository:
    """A Bitbucket repository bound to its main branch."""

    def __init__(
        self,
        client: BitbucketApiClient,
        workspace: str,
        repo_slug: str,
        main_branch_name: str,
        main_branch_head: str,
    ):
        self.client = client
        self.workspace = workspace
        self.repo_slug = repo_slug
        self._main_branch = RemoteBranch(name=main_branch_name, head=main_branch_head)

    @property
    def main_branch(self) -> RemoteBranch:
        return self._main_branch

    async def create_branch(self, name: str, from_ref: str) -> RemoteBranch:
        response = await self.client.create_branch(self.workspace, self.repo_slug, name, from_ref)
        return RemoteBranch(name=response["name"], head=response["target"]["hash"])

    async def download_file_contents(self, path: str) -> str:
        return await self.client.get_file_contents(
            self.workspace, self.repo_slug, path, commit=self._main_branch.head
        )

    async def create_commit(
        self,
        message: str,
        files: dict[str, str],
        branch: RemoteBranch,
        author: str,
    ) -> None:
        await self.client.create_file_commit(
            self.workspace,
            self.repo_slug,
            files=files,
            message=message,
            author=author,
            branch=branch.name,
        )

    async def open_pull_request(self, pr_data: PullRequestCreate) -> PullRequest:
        response = await self.client.open_pull_request(
            self.workspace,
            self.repo_slug,
            title=pr_data.title,
            source_branch=pr_data.source_branch,
            target_branch=pr_data.target_branch or self._main_branch.name,
        )
        return PullRequest(
            id=response["id"],
            link=response["links"]["html"]["href"],
            title=response["title"],
        )


class BitbucketHost:
    """Authenticated access to Bitbucket repositories.

    Owns the HTTP client; use as an async context manager so it gets closed.
    """

    def __init__(
        self,
        access_token: str,
        base_url: str = DEFAULT_BASE_URL,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.client = BitbucketApiClient(access_token, base_url=base_url, transport=transport)

    async def __aenter__(self) -> "BitbucketHost":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.client.aclose()

    async def get_repo(self, workspace: str, repo_slug: str) -> BitbucketRemoteRepository:
        """Look up the repository and its main branch head."""
        repo = await self.client.get_repo(workspace, repo_slug)
        main_branch_name = repo["mainbranch"]["name"]

        branch = await self.client.get_branch(workspace, repo_slug, main_branch_name)
        main_branch_head = branch["target"]["hash"]
        logger.debug("%s/%s main branch %s at %s", workspace, repo_slug, main_branch_name, main_branch_head)

        return BitbucketRemoteRepository(
            self.client,
            workspace,
            repo_slug,
            main_branch_name,
            main_branch_head,
        )
