"""
Issue Filters

Turns the issue options given on the command line (--issue, --bugzilla,
--bz, --cve) into a set of (type, id) predicates.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Optional

logger = logging.getLogger(__name__)

# option name -> tracker type (None matches any type)
ISSUE_OPTIONS: dict[str, Optional[str]] = {
    "issues": None,
    "bugzilla": "bugzilla",
    "bz": "bugzilla",
    "cve": "cve",
}


@dataclass(frozen=True)
class IssueRef:
    """
    An issue predicate.

    Attributes:
        type: Tracker type, None for any type
        id: Issue id, None for any id of that type
    """

    type: Optional[str] = None
    id: Optional[str] = None

    @property
    def any_type(self) -> bool:
        return self.type is None

    @property
    def specific_type(self) -> bool:
        return self.type is not None

    @property
    def any_id(self) -> bool:
        return self.id is None

    @property
    def specific_id(self) -> bool:
        return self.id is not None

    def sort_key(self) -> tuple:
        return (self.type is not None, self.type or "", self.id is not None, self.id or "")

    def __str__(self) -> str:
        return f"{self.type or '*'}#{self.id or '*'}"


def split_issue_ids(raw: Optional[str]) -> list[str]:
    """Split a comma separated option value, dropping empty entries."""
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


@dataclass(frozen=True)
class IssueSpecSet:
    """
    Deduplicated issue predicates of one command invocation.

    Iteration is sorted so that output does not depend on option order.
    An empty set means there is nothing to do.
    """

    issues: frozenset[IssueRef] = frozenset()
    warnings: tuple[str, ...] = field(default=(), compare=False)

    @classmethod
    def from_options(
        cls,
        values: Mapping[str, Sequence[Optional[str]]],
        options: Mapping[str, Optional[str]] = ISSUE_OPTIONS,
    ) -> IssueSpecSet:
        """
        Build the predicate set from raw option values.

        Args:
            values: Option name to the values given for it; a bare option
                (no argument) is recorded as None or an empty string
            options: Option name to tracker type

        Returns:
            IssueSpecSet, with a warning for every bare option that was
            dropped because the same option also carried ids
        """
        issues: set[IssueRef] = set()
        warnings: list[str] = []

        for option, issue_type in options.items():
            raw_values = values.get(option) or []
            bare = False
            ids: list[str] = []

            for raw in raw_values:
                parsed = split_issue_ids(raw)
                if parsed:
                    ids.extend(parsed)
                else:
                    bare = True

            if not ids:
                if bare:
                    issues.add(IssueRef(issue_type, None))
                continue

            if bare:
                message = (
                    f"Ignoring --{option} without argument because similar "
                    "option with an argument has been specified."
                )
                logger.warning(message)
                warnings.append(message)

            for issue_id in ids:
                issues.add(IssueRef(issue_type, issue_id))

        return cls(frozenset(issues), tuple(warnings))

    def __iter__(self) -> Iterator[IssueRef]:
        return iter(sorted(self.issues, key=IssueRef.sort_key))

    def __len__(self) -> int:
        return len(self.issues)

    def __contains__(self, issue: object) -> bool:
        return issue in self.issues
