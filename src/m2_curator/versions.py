"""Maven version parsing and ordering.

Versions are split into numeric and alphabetic segments on `.`, `-`, `_`
and on digit/letter transitions, so `1.0RC1-SNAPSHOT` becomes
`1, 0, rc, 1, snapshot`. Numeric segments compare numerically, alphabetic
ones through a fixed qualifier precedence table:

    alpha < beta < milestone < rc/cr < snapshot < (release/ga/final) < sp

Unknown qualifiers sort after `sp`, alphabetically. A missing segment is
treated as the release qualifier, so `2.3-SNAPSHOT < 2.3 < 2.3-sp1` and
`1.0 < 1.0.1`. Unique snapshots (`base-yyyyMMdd.HHmmss-N`) are ordered as
their `base-SNAPSHOT` spelling first, then by timestamp and build number.
"""

from __future__ import annotations

import functools
import re
from collections.abc import Iterable
from typing import Callable, NamedTuple

SNAPSHOT = "SNAPSHOT"

UNIQUE_SNAPSHOT_PATTERN = re.compile(r"^(.*)-([0-9]{8}\.[0-9]{6})-([0-9]+)$")
TIMESTAMP_PATTERN = re.compile(r"^([0-9]{8})\.([0-9]{6})$")

_SEGMENT_RE = re.compile(r"[0-9]+|[A-Za-z]+")

_RELEASE_RANK = 6
_UNKNOWN_RANK = 8
_QUALIFIER_RANKS: dict[str, int] = {
    "alpha": 1,
    "a": 1,
    "beta": 2,
    "b": 2,
    "milestone": 3,
    "m": 3,
    "rc": 4,
    "cr": 4,
    "snapshot": 5,
    "ga": _RELEASE_RANK,
    "final": _RELEASE_RANK,
    "release": _RELEASE_RANK,
    "sp": 7,
}

_Segment = tuple[int, int, str]
_PAD: _Segment = (1, _RELEASE_RANK, "")


class UniqueSnapshot(NamedTuple):
    """The parts of a unique snapshot version string."""

    base: str
    timestamp: str
    build_number: int


def has_number(version: str) -> bool:
    """Return True if the version contains at least one digit."""
    return any(ch.isdigit() for ch in version)


def parse_unique_snapshot(version: str) -> UniqueSnapshot | None:
    """Split `1.0-20070821.213044-8` into `("1.0", "20070821.213044", 8)`.

    Returns:
        The parsed parts, or None when the version is not a unique snapshot.
    """
    m = UNIQUE_SNAPSHOT_PATTERN.match(version or "")
    if m is None:
        return None
    return UniqueSnapshot(base=m.group(1), timestamp=m.group(2), build_number=int(m.group(3)))


def is_generic_snapshot(version: str | None) -> bool:
    """True for the `<base>-SNAPSHOT` spelling (case-sensitive)."""
    return bool(version) and version.endswith("-" + SNAPSHOT)


def is_unique_snapshot(version: str | None) -> bool:
    """True for the `<base>-<yyyyMMdd.HHmmss>-<build>` spelling."""
    return bool(version) and UNIQUE_SNAPSHOT_PATTERN.match(version) is not None


def is_snapshot(version: str | None) -> bool:
    return is_generic_snapshot(version) or is_unique_snapshot(version)


def get_base_version(version: str) -> str:
    """Return `<base>-SNAPSHOT` for a unique snapshot, else `version` unchanged."""
    unique = parse_unique_snapshot(version)
    if unique is None:
        return version
    return f"{unique.base}-{SNAPSHOT}"


def get_release_version(version: str) -> str:
    """Return the release a snapshot will become, e.g. `2.3-SNAPSHOT` -> `2.3`."""
    base = get_base_version(version)
    if is_generic_snapshot(base):
        return base[: -len(SNAPSHOT) - 1]
    return base


def _segment_key(segment: str) -> _Segment:
    if segment.isdigit():
        return (2, int(segment), "")
    lower = segment.lower()
    rank = _QUALIFIER_RANKS.get(lower)
    if rank is None:
        return (1, _UNKNOWN_RANK, lower)
    return (1, rank, "")


def _segments(version: str) -> list[_Segment]:
    return [_segment_key(s) for s in _SEGMENT_RE.findall(version)]


def _snapshot_order(version: str) -> tuple[int, int, int]:
    unique = parse_unique_snapshot(version)
    if unique is None:
        return (0, 0, 0)
    return (1, int(unique.timestamp.replace(".", "")), unique.build_number)


def _cmp(a: object, b: object) -> int:
    return (a > b) - (a < b)  # type: ignore[operator]


def compare(a: str, b: str) -> int:
    """Compare two version strings.

    Returns:
        -1, 0 or 1. The order is total: only identical strings compare equal.
    """
    if a == b:
        return 0

    left = _segments(get_base_version(a))
    right = _segments(get_base_version(b))
    for i in range(max(len(left), len(right))):
        x = left[i] if i < len(left) else _PAD
        y = right[i] if i < len(right) else _PAD
        result = _cmp(x, y)
        if result:
            return result

    result = _cmp(_snapshot_order(a), _snapshot_order(b))
    if result:
        return result
    return _cmp(a, b)


version_key: Callable[[str], object] = functools.cmp_to_key(compare)


def sort_versions(versions: Iterable[str], *, reverse: bool = False) -> list[str]:
    """Sort versions by `compare`, oldest first unless `reverse` is set."""
    return sorted(versions, key=version_key, reverse=reverse)


def max_version(versions: Iterable[str]) -> str | None:
    ordered = sort_versions(versions)
    return ordered[-1] if ordered else None
