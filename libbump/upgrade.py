"""Library version upgrades in package.json manifests."""

import json
import logging
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path

from . import errors
from .models import DEFAULT_DEPENDENCY_KINDS, DependencyKind, LibraryChange, UpgradeResult
from .versions import is_valid_version, is_version_downgrade

logger = logging.getLogger(__name__)

MANIFEST_INDENT = 2


def parse_manifest(content: str, source: str = "package.json") -> dict:
    """Parse package.json content into an ordered dict.

    Args:
        content: Raw manifest text
        source: Location used in error messages

    Returns:
        The parsed top-level object
    """
    try:
        manifest = json.loads(content)
    except json.JSONDecodeError as e:
        raise errors.invalid_manifest(source, str(e), not_json=True) from e

    if not isinstance(manifest, dict):
        raise errors.invalid_manifest(source, "top-level value must be an object")
    return manifest


def dump_manifest(manifest: dict, trailing_newline: bool = False) -> str:
    """Serialize a manifest with 2-space indentation, keeping key order."""
    content = json.dumps(manifest, indent=MANIFEST_INDENT, ensure_ascii=False)
    if trailing_newline:
        content += "\n"
    return content


def find_library_usages(
    manifest: dict,
    library_name: str,
    kinds: Iterable[DependencyKind],
    source: str = "package.json",
) -> list[tuple[DependencyKind, dict]]:
    """Find every dependency map among ``kinds`` that declares ``library_name``."""
    usages = []
    for kind in kinds:
        deps = kind.lookup(manifest)
        if deps is None:
            continue
        if not isinstance(deps, dict):
            raise errors.invalid_manifest(source, f"'{kind.value}' must be an object")
        if library_name in deps:
            usages.append((kind, deps))
    return usages


def _normalize_kinds(kinds: Iterable[DependencyKind | str] | None) -> list[DependencyKind]:
    if kinds is None:
        return list(DEFAULT_DEPENDENCY_KINDS)
    # Drop duplicates, keep the caller's order
    return list(dict.fromkeys(DependencyKind(kind) for kind in kinds))


def upgrade_manifest_content(
    content: str,
    library_name: str,
    new_version: str,
    kinds: Iterable[DependencyKind | str] | None = None,
    source: str = "package.json",
) -> UpgradeResult:
    """Upgrade a library in manifest text without touching the filesystem.

    Every declaration is checked for a downgrade before any of them is
    rewritten, so a failure leaves the manifest untouched.

    Raises:
        AppError: invalid version, malformed manifest, library not declared
            or possible downgrade
    """
    if not is_valid_version(new_version):
        raise errors.invalid_version_format(new_version)

    manifest = parse_manifest(content, source)
    usages = find_library_usages(manifest, library_name, _normalize_kinds(kinds), source)
    if not usages:
        raise errors.library_usage_not_found(library_name)

    for kind, deps in usages:
        current_spec = deps[library_name]
        logger.debug("Checking %s %s=%r", kind.value, library_name, current_spec)
        if is_version_downgrade(current_spec, new_version):
            raise errors.maybe_library_downgrade(current_spec, new_version)

    changes = []
    for kind, deps in usages:
        changes.append(LibraryChange(kind=kind, current_version=deps[library_name], new_version=new_version))
        deps[library_name] = new_version

    return UpgradeResult(
        library_name=library_name,
        new_version=new_version,
        content=dump_manifest(manifest, trailing_newline=content.endswith("\n")),
        changes=changes,
    )


class LibraryUpgradeService:
    """Upgrades a library version in a package.json file."""

    def upgrade_library(
        self,
        manifest_path: str | Path,
        library_name: str,
        new_version: str,
        kinds: Iterable[DependencyKind | str] | None = None,
    ) -> UpgradeResult:
        """Upgrade the library version in the given package.json file.

        Args:
            manifest_path: Path to the package.json file
            library_name: Name of the library to upgrade
            new_version: Exact version to set (x.y.z)
            kinds: Dependency kinds to update, defaults to dependencies and devDependencies

        Returns:
            Upgrade result with the rewritten content and changed declarations

        Raises:
            AppError: the version is not valid semver, the file is missing or
                malformed, the library is not declared, or the new version
                looks like a downgrade
        """
        if not is_valid_version(new_version):
            raise errors.invalid_version_format(new_version)

        path = Path(manifest_path)
        content = self._read_manifest(path)
        result = upgrade_manifest_content(content, library_name, new_version, kinds, source=str(manifest_path))

        self._write_manifest(path, result.content)
        logger.info(
            "Upgraded %s to %s in %d location(s) of %s",
            library_name,
            new_version,
            len(result.changes),
            manifest_path,
        )
        return result

    def _write_manifest(self, path: Path, content: str) -> None:
        """Replace the manifest in one step; the original stays intact if anything fails."""
        data = content.encode("utf-8")
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
        try:
            with os.fdopen(fd, "wb") as tmp_file:
                tmp_file.write(data)
            os.chmod(tmp_name, path.stat().st_mode & 0o777)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _read_manifest(self, path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise errors.file_not_found(str(path)) from e
