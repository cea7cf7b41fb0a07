"""Tests for the end-to-end upgrade workflow."""

from unittest.mock import AsyncMock, patch

import pytest

from libbump.errors import AppError, ErrorKind
from libbump.inputs import ScriptInputs
from libbump.models import DependencyKind, PullRequest, PullRequestCreate, RemoteBranch
from libbump.upgrade import LibraryUpgradeService
from libbump.workflow import run_upgrade_workflow, upgrade_in_repository


class FakeRepository:
    """In-memory remote repository recording every write."""

    def __init__(self, files: dict[str, str]):
        self.files = files
        self.branches: list[tuple[str, str]] = []
        self.commits: list[dict] = []
        self.pull_requests: list[PullRequestCreate] = []

    @property
    def main_branch(self) -> RemoteBranch:
        return RemoteBranch(name="main", head="abc123")

    async def create_branch(self, name: str, from_ref: str) -> RemoteBranch:
        self.branches.append((name, from_ref))
        return RemoteBranch(name=name, head=from_ref)

    async def download_file_contents(self, path: str) -> str:
        if path not in self.files:
            raise AppError(ErrorKind.FILE_NOT_FOUND, f"File at '{path}' is not found", path=path)
        return self.files[path]

    async def create_commit(self, message, files, branch, author) -> None:
        self.commits.append({"message": message, "files": files, "branch": branch, "author": author})

    async def open_pull_request(self, pr_data: PullRequestCreate) -> PullRequest:
        self.pull_requests.append(pr_data)
        return PullRequest(id=1, link="https://bitbucket.test/pr/1", title=pr_data.title)


class RecordingUpgradeService(LibraryUpgradeService):
    """Upgrade service that remembers where the manifest was staged."""

    def __init__(self):
        self.staged_paths = []

    def upgrade_library(self, manifest_path, *args, **kwargs):
        self.staged_paths.append(manifest_path)
        return super().upgrade_library(manifest_path, *args, **kwargs)


def make_inputs(**overrides) -> ScriptInputs:
    values = dict(
        workspace="acme",
        repo_slug="web-app",
        library_name="shelljs",
        library_version="1.0.0",
        access_token="secret",
    )
    values.update(overrides)
    return ScriptInputs(**values)


class TestUpgradeInRepository:
    """Test the workflow against an in-memory repository."""

    @pytest.mark.asyncio
    async def test_opens_pull_request_with_upgraded_manifest(self, fixture_path):
        """Should branch from main, commit the new manifest and open a PR."""
        original = fixture_path("package.json").read_text(encoding="utf-8")
        repo = FakeRepository({"package.json": original})

        pr = await upgrade_in_repository(repo, make_inputs())

        assert pr.link == "https://bitbucket.test/pr/1"
        assert repo.branches == [("lib-upgrade-shelljs-1.0.0", "abc123")]

        commit = repo.commits[0]
        assert commit["message"] == "Upgrade shelljs to 1.0.0"
        assert commit["branch"].name == "lib-upgrade-shelljs-1.0.0"
        assert commit["files"] == {
            "package.json": original.replace('"shelljs": "^1.0.0"', '"shelljs": "1.0.0"')
        }

        assert repo.pull_requests == [
            PullRequestCreate(
                title="Library version upgrade: shelljs => 1.0.0",
                source_branch="lib-upgrade-shelljs-1.0.0",
            )
        ]

    @pytest.mark.asyncio
    async def test_staging_file_removed_on_success(self, fixture_path):
        """Should delete the staged manifest after a successful run."""
        repo = FakeRepository({"package.json": fixture_path("package.json").read_text(encoding="utf-8")})
        upgrader = RecordingUpgradeService()

        await upgrade_in_repository(repo, make_inputs(), upgrader)

        assert len(upgrader.staged_paths) == 1
        assert not upgrader.staged_paths[0].exists()

    @pytest.mark.asyncio
    async def test_downgrade_stops_before_remote_writes(self, fixture_path):
        """Should not create a branch, commit or PR when the upgrade is refused."""
        repo = FakeRepository({"package.json": fixture_path("package.json").read_text(encoding="utf-8")})
        upgrader = RecordingUpgradeService()

        with pytest.raises(AppError) as exc_info:
            await upgrade_in_repository(
                repo, make_inputs(library_name="bitbucket", library_version="2.10.0"), upgrader
            )

        assert exc_info.value.kind == ErrorKind.MAYBE_LIBRARY_DOWNGRADE
        assert repo.branches == []
        assert repo.commits == []
        assert repo.pull_requests == []
        assert not upgrader.staged_paths[0].exists()

    @pytest.mark.asyncio
    async def test_missing_manifest(self):
        """Should fail when the repository has no manifest."""
        repo = FakeRepository({})

        with pytest.raises(AppError) as exc_info:
            await upgrade_in_repository(repo, make_inputs())

        assert exc_info.value.kind == ErrorKind.FILE_NOT_FOUND
        assert repo.branches == []

    @pytest.mark.asyncio
    async def test_custom_manifest_path_and_kinds(self, fixture_path):
        """Should honour the manifest path and dependency kinds from the inputs."""
        contents = fixture_path("package_multiple_locations.json").read_text(encoding="utf-8")
        repo = FakeRepository({"web/package.json": contents})
        inputs = make_inputs(
            manifest_path="web/package.json",
            dependency_kinds=[DependencyKind.PEER_DEPENDENCIES],
        )

        await upgrade_in_repository(repo, inputs)

        committed = repo.commits[0]["files"]["web/package.json"]
        assert '"shelljs": ">=0.8.0"' not in committed
        assert '"shelljs": "^0.8.5"' in committed


class TestRunUpgradeWorkflow:
    """Test wiring of the Bitbucket host."""

    @pytest.mark.asyncio
    async def test_uses_bitbucket_host(self):
        """Should open the host with the token and URL and close it afterwards."""
        expected = PullRequest(id=1, link="https://bitbucket.test/pr/1", title="t")
        repo = object()

        with patch("libbump.workflow.BitbucketHost") as mock_host_class, patch(
            "libbump.workflow.upgrade_in_repository", new=AsyncMock(return_value=expected)
        ) as mock_upgrade:
            host = mock_host_class.return_value
            host.__aenter__ = AsyncMock(return_value=host)
            host.__aexit__ = AsyncMock(return_value=None)
            host.get_repo = AsyncMock(return_value=repo)

            inputs = make_inputs(base_url="https://bitbucket.test/2.0")
            pr = await run_upgrade_workflow(inputs)

        assert pr == expected
        mock_host_class.assert_called_once_with("secret", base_url="https://bitbucket.test/2.0")
        host.get_repo.assert_awaited_once_with("acme", "web-app")
        mock_upgrade.assert_awaited_once_with(repo, inputs)
        host.__aexit__.assert_awaited_once()
