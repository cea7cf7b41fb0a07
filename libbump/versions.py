"""Semantic version checks for npm-style version specifiers.

Exact versions are parsed with :mod:`semver`. Range expressions follow the
npm grammar (``||`` alternatives, hyphen ranges, ``^``, ``~``, x-ranges and
primitive comparators). Only the lower end of a range matters for deciding
whether a requested version would be a downgrade, so ranges are reduced to
one lower bound per ``||`` alternative.
"""

import logging
import re
from dataclasses import dataclass

from semver import Version

logger = logging.getLogger(__name__)

_NUMBER = r"0|[1-9]\d*"
_XR = rf"{_NUMBER}|[xX*]"
_IDENTIFIERS = r"[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*"
_PARTIAL = (
    rf"v?(?P<major>{_XR})"
    rf"(?:\.(?P<minor>{_XR})"
    rf"(?:\.(?P<patch>{_XR})"
    rf"(?:-(?P<prerelease>{_IDENTIFIERS}))?"
    rf"(?:\+(?P<build>{_IDENTIFIERS}))?)?)?"
)
_OPERATOR = r"\^|~>?|[<>]=?|="

COMPARATOR_RE = re.compile(rf"(?P<op>{_OPERATOR})?{_PARTIAL}")
PARTIAL_RE = re.compile(_PARTIAL)
HYPHEN_RE = re.compile(r"^(?P<low>\S+)\s+-\s+(?P<high>\S+)$")
OPERATOR_SPACE_RE = re.compile(rf"({_OPERATOR})\s+")


@dataclass(frozen=True)
class LowerBound:
    """Lowest version admitted by one comparator set."""

    version: Version
    inclusive: bool = True

    def tighter_than(self, other: "LowerBound") -> bool:
        if self.version != other.version:
            return self.version > other.version
        return not self.inclusive and other.inclusive

    def is_above(self, version: Version) -> bool:
        """True when ``version`` falls below this bound."""
        if self.inclusive:
            return version < self.version
        return version <= self.version


def parse_version(value: str) -> Version | None:
    """Parse an exact semantic version, returning None when invalid."""
    if not isinstance(value, str):
        return None
    try:
        return Version.parse(value)
    except ValueError:
        return None


def is_valid_version(value: str) -> bool:
    return parse_version(value) is not None


def _is_wildcard(part: str | None) -> bool:
    return part is None or part in ("x", "X", "*")


def _comparator_lower_bound(op: str | None, match: re.Match) -> LowerBound | None:
    """Lower bound implied by a single comparator, or None if it only bounds from above."""
    major, minor, patch = match.group("major", "minor", "patch")
    if op in ("<", "<=") or _is_wildcard(major):
        return None

    if op == ">":
        if _is_wildcard(minor):
            return LowerBound(Version(int(major) + 1))
        if _is_wildcard(patch):
            return LowerBound(Version(int(major), int(minor) + 1))
        return LowerBound(_full_version(match), inclusive=False)

    if _is_wildcard(minor):
        return LowerBound(Version(int(major)))
    if _is_wildcard(patch):
        return LowerBound(Version(int(major), int(minor)))
    return LowerBound(_full_version(match))


def _full_version(match: re.Match) -> Version:
    return Version(
        int(match.group("major")),
        int(match.group("minor")),
        int(match.group("patch")),
        prerelease=match.group("prerelease"),
        build=match.group("build"),
    )


def _comparator_set_lower_bound(expression: str) -> tuple[bool, LowerBound | None]:
    """Parse one ``||`` alternative.

    Returns:
        Tuple of (valid, bound). ``bound`` is None when the alternative has no
        lower limit (``*``, ``<2.0.0``, an empty expression).
    """
    expression = expression.strip()
    if not expression:
        return True, None

    hyphen = HYPHEN_RE.match(expression)
    if hyphen:
        low = PARTIAL_RE.fullmatch(hyphen.group("low"))
        high = PARTIAL_RE.fullmatch(hyphen.group("high"))
        if not low or not high:
            return False, None
        return True, _comparator_lower_bound(None, low)

    bound = None
    for token in OPERATOR_SPACE_RE.sub(r"\1", expression).split():
        match = COMPARATOR_RE.fullmatch(token)
        if not match:
            return False, None
        candidate = _comparator_lower_bound(match.group("op"), match)
        if candidate and (bound is None or candidate.tighter_than(bound)):
            bound = candidate
    return True, bound


def parse_range(value: str) -> list[LowerBound | None] | None:
    """Reduce an npm range to one lower bound per ``||`` alternative.

    Args:
        value: Range expression such as ``^1.2.3`` or ``>=1.0.0 <2.0.0 || 3.x``

    Returns:
        List of bounds (None for unbounded alternatives), or None if
        ``value`` is not a valid range.
    """
    if not isinstance(value, str):
        return None

    bounds = []
    for alternative in value.split("||"):
        valid, bound = _comparator_set_lower_bound(alternative)
        if not valid:
            return None
        bounds.append(bound)
    return bounds


def is_valid_range(value: str) -> bool:
    return parse_range(value) is not None


def lt(version: str, other: str) -> bool:
    """True when exact ``version`` is strictly lower than exact ``other``."""
    return Version.parse(version) < Version.parse(other)


def ltr(version: str, range_expression: str) -> bool:
    """True when ``version`` is lower than every version the range admits."""
    bounds = parse_range(range_expression)
    if bounds is None:
        raise ValueError(f"Invalid range: {range_expression!r}")

    parsed = Version.parse(version)
    return all(bound is not None and bound.is_above(parsed) for bound in bounds)


def is_version_downgrade(current_spec: str, new_version: str) -> bool:
    """Check whether moving from ``current_spec`` to ``new_version`` lowers the version.

    Handles both a range (e.g. ``^x.y.z`` or ``~x.y.z``) and a plain version
    (``x.y.z``). Specifiers that are neither (``latest``, ``file:../lib``,
    git URLs) are not treated as a downgrade.
    """
    if is_valid_range(current_spec):
        return ltr(new_version, current_spec)
    if is_valid_version(current_spec):
        return lt(new_version, current_spec)

    logger.warning(
        "Cannot compare version specifier %r with %s; assuming upgrade",
        current_spec,
        new_version,
    )
    return False
