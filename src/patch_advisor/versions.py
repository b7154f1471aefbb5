"""
Edition Utilities

Parsing and ordering of RPM editions ([epoch:]version[-release]) and the
name/edition/arch ordering used to decide whether a candidate is newer
than what is installed.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import total_ordering
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .models import Resource

_SEGMENT_RE = re.compile(r"~|\^|[0-9]+|[a-zA-Z]+")


def _normalize_epoch(epoch: int | str | None) -> int:
    if epoch is None:
        return 0
    if isinstance(epoch, str):
        return 0 if epoch in ("(none)", "", "None") else int(epoch)
    return epoch


def rpmvercmp(v1: str, v2: str) -> int:
    """
    Compare two version or release strings the way rpm does.

    Alphanumeric runs are compared segment by segment, numbers numerically
    and letters lexically; a numeric segment beats an alphabetic one. A
    tilde sorts before anything (pre-releases), a caret after the base
    version but before any further segment.

    Returns:
        -1 if v1 < v2
         0 if v1 == v2
         1 if v1 > v2
    """
    if v1 == v2:
        return 0

    segments1 = _SEGMENT_RE.findall(v1)
    segments2 = _SEGMENT_RE.findall(v2)

    while segments1 or segments2:
        s1 = segments1.pop(0) if segments1 else None
        s2 = segments2.pop(0) if segments2 else None

        if s1 == "~" or s2 == "~":
            if s1 != "~":
                return 1
            if s2 != "~":
                return -1
            continue

        if s1 == "^" or s2 == "^":
            if s1 is None:
                return -1
            if s2 is None:
                return 1
            if s1 != "^":
                return 1
            if s2 != "^":
                return -1
            continue

        if s1 is None:
            return -1
        if s2 is None:
            return 1

        if s1.isdigit() and s2.isdigit():
            n1, n2 = int(s1), int(s2)
            if n1 != n2:
                return -1 if n1 < n2 else 1
        elif s1.isdigit():
            return 1
        elif s2.isdigit():
            return -1
        elif s1 != s2:
            return -1 if s1 < s2 else 1

    return 0


def _segments(value: str) -> tuple:
    """Segments of a version string as rpmvercmp sees them."""
    return tuple(int(s) if s.isdigit() else s for s in _SEGMENT_RE.findall(value))


@total_ordering
@dataclass(frozen=True)
class Edition:
    """
    An RPM edition.

    Attributes:
        version: Version string
        release: Release string, may be empty
        epoch: Epoch (default: 0)
    """

    version: str
    release: str = ""
    epoch: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "epoch", _normalize_epoch(self.epoch))

    @classmethod
    def parse(cls, text: str) -> Edition:
        """
        Parse an edition string.

        Supported formats:
            version
            version-release
            epoch:version-release

        Args:
            text: Edition string

        Returns:
            Edition object
        """
        epoch = 0
        if ":" in text:
            epoch_text, text = text.split(":", 1)
            epoch = _normalize_epoch(epoch_text)
        version, _, release = text.partition("-")
        return cls(version=version, release=release, epoch=epoch)

    def compare(self, other: Edition) -> int:
        """Three-way comparison of epoch, version and release."""
        if self.epoch != other.epoch:
            return -1 if self.epoch < other.epoch else 1
        version_cmp = rpmvercmp(self.version, other.version)
        if version_cmp != 0:
            return version_cmp
        return rpmvercmp(self.release, other.release)

    def _key(self) -> tuple:
        # equal keys exactly when compare() returns 0
        return (self.epoch, _segments(self.version), _segments(self.release))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Edition):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Edition):
            return NotImplemented
        return self.compare(other) < 0

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        return format_evr(self.epoch, self.version, self.release)


def format_evr(epoch: int | str, version: str, release: str) -> str:
    """
    Format epoch-version-release string.

    The epoch is omitted when it is 0, the release when it is empty.
    """
    epoch = _normalize_epoch(epoch)
    evr = f"{epoch}:{version}" if epoch > 0 else version
    return f"{evr}-{release}" if release else evr


def compare_by_nvra(lhs: Resource, rhs: Resource) -> int:
    """
    Order two resources by name, then edition, then architecture.

    Args:
        lhs: Left-hand resource
        rhs: Right-hand resource

    Returns:
        Negative, zero or positive like a classic cmp function
    """
    if lhs.name != rhs.name:
        return -1 if lhs.name < rhs.name else 1
    edition_cmp = lhs.edition.compare(rhs.edition)
    if edition_cmp != 0:
        return edition_cmp
    if lhs.arch != rhs.arch:
        return -1 if lhs.arch < rhs.arch else 1
    return 0


def is_newer(candidate: Resource, installed: Optional[Resource]) -> bool:
    """Return True if candidate compares strictly greater than installed."""
    if installed is None:
        return False
    return compare_by_nvra(installed, candidate) < 0
