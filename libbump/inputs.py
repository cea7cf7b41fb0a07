"""Script inputs collected from CLI options and environment variables."""

from dataclasses import dataclass, field

from . import errors
from .bitbucket import DEFAULT_BASE_URL
from .models import DEFAULT_DEPENDENCY_KINDS, DependencyKind

ACCESS_TOKEN_ENV = "BITBUCKET_ACCESS_TOKEN"
BASE_URL_ENV = "BITBUCKET_API_URL"
DEFAULT_MANIFEST_PATH = "package.json"
DEFAULT_AUTHOR = "vcs-automation-scripts <automation@libbump.invalid>"


@dataclass
class ScriptInputs:
    """Everything the upgrade workflow needs to run."""

    workspace: str
    repo_slug: str
    library_name: str
    library_version: str
    access_token: str
    manifest_path: str = DEFAULT_MANIFEST_PATH
    dependency_kinds: list[DependencyKind] = field(default_factory=lambda: list(DEFAULT_DEPENDENCY_KINDS))
    author: str = DEFAULT_AUTHOR
    base_url: str = DEFAULT_BASE_URL

    @property
    def branch_name(self) -> str:
        return f"lib-upgrade-{self.library_name}-{self.library_version}"

    @property
    def pull_request_title(self) -> str:
        return f"Library version upgrade: {self.library_name} => {self.library_version}"

    @property
    def commit_message(self) -> str:
        return f"Upgrade {self.library_name} to {self.library_version}"


def collect_inputs(
    workspace: str | None,
    repo_slug: str | None,
    library_name: str | None,
    library_version: str | None,
    access_token: str | None,
    manifest_path: str | None = None,
    dependency_kinds: list[DependencyKind] | None = None,
    author: str | None = None,
    base_url: str | None = None,
) -> ScriptInputs:
    """Validate required values and build ScriptInputs.

    Raises:
        AppError: MISSING_REQUIRED_INPUT naming the first absent value
    """
    required = [
        ("--workspace", workspace),
        ("--reposlug", repo_slug),
        ("--library", library_name),
        ("--library-version", library_version),
        (ACCESS_TOKEN_ENV, access_token),
    ]
    for name, value in required:
        if not value:
            raise errors.missing_required_input(name)

    return ScriptInputs(
        workspace=workspace,
        repo_slug=repo_slug,
        library_name=library_name,
        library_version=library_version,
        access_token=access_token,
        manifest_path=manifest_path or DEFAULT_MANIFEST_PATH,
        dependency_kinds=list(dependency_kinds or DEFAULT_DEPENDENCY_KINDS),
        author=author or DEFAULT_AUTHOR,
        base_url=base_url or DEFAULT_BASE_URL,
    )
