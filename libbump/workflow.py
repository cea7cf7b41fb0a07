"""End-to-end library upgrade: manifest download, upgrade, branch, commit, pull request."""

import logging
import tempfile
from pathlib import Path

from .bitbucket import BitbucketHost
from .inputs import ScriptInputs
from .models import PullRequest, PullRequestCreate
from .remote import RemoteRepository
from .upgrade import LibraryUpgradeService

logger = logging.getLogger(__name__)


async def upgrade_in_repository(
    repo: RemoteRepository,
    inputs: ScriptInputs,
    upgrader: LibraryUpgradeService | None = None,
) -> PullRequest:
    """Upgrade the library in ``repo`` and open a pull request with the change.

    The manifest is staged in a temporary directory that is removed on every
    exit path. Upgrade failures happen before anything is written remotely.
    """
    upgrader = upgrader or LibraryUpgradeService()

    # Assumes a single manifest at a fixed path, no monorepo layouts
    manifest_raw = await repo.download_file_contents(inputs.manifest_path)

    with tempfile.TemporaryDirectory(prefix="libbump-") as staging_dir:
        staged = Path(staging_dir) / Path(inputs.manifest_path).name
        staged.write_text(manifest_raw, encoding="utf-8")

        upgrader.upgrade_library(
            staged,
            inputs.library_name,
            inputs.library_version,
            inputs.dependency_kinds,
        )
        upgraded = staged.read_text(encoding="utf-8")

    branch = await repo.create_branch(inputs.branch_name, repo.main_branch.head)
    logger.info("Created branch %s from %s", branch.name, repo.main_branch.head)

    await repo.create_commit(
        inputs.commit_message,
        {inputs.manifest_path: upgraded},
        branch,
        inputs.author,
    )

    return await repo.open_pull_request(
        PullRequestCreate(title=inputs.pull_request_title, source_branch=branch.name)
    )


async def run_upgrade_workflow(inputs: ScriptInputs) -> PullRequest:
    """Run the upgrade against the Bitbucket repository named by ``inputs``."""
    async with BitbucketHost(inputs.access_token, base_url=inputs.base_url) as host:
        repo = await host.get_repo(inputs.workspace, inputs.repo_slug)
        return await upgrade_in_repository(repo, inputs)
