"""Core data models for libbump."""

from dataclasses import dataclass, field
from enum import Enum


class DependencyKind(str, Enum):
    """A section of package.json where dependencies are declared."""

    DEPENDENCIES = "dependencies"
    DEV_DEPENDENCIES = "devDependencies"
    PEER_DEPENDENCIES = "peerDependencies"

    def lookup(self, manifest: dict) -> dict | None:
        """Return this kind's dependency map from a parsed manifest, if present."""
        return manifest.get(self.value)


DEFAULT_DEPENDENCY_KINDS = (
    DependencyKind.DEPENDENCIES,
    DependencyKind.DEV_DEPENDENCIES,
)


@dataclass
class LibraryChange:
    """A single declaration of a library that was rewritten."""

    kind: DependencyKind
    current_version: str
    new_version: str


@dataclass
class UpgradeResult:
    """Result of upgrading a library in a manifest."""

    library_name: str
    new_version: str
    content: str
    changes: list[LibraryChange] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return any(c.current_version != c.new_version for c in self.changes)


@dataclass
class RemoteBranch:
    """Branch name and the commit hash of its head."""

    name: str
    head: str


@dataclass
class PullRequest:
    """A pull request opened on a remote repository."""

    id: int
    link: str
    title: str


@dataclass
class PullRequestCreate:
    """Data needed to open a pull request."""

    title: str
    source_branch: str
    target_branch: str | None = None  # defaults to the main branch
