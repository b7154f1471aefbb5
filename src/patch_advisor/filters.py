"""
Patch Acceptance Filter

Restricts patches by category, severity and issue date as requested with
--category, --severity and --date.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from typing import Optional

from .models import PatchRecord


def _normalized(values: Optional[Iterable[str]]) -> frozenset[str]:
    result: set[str] = set()
    for value in values or ():
        result.update(part.strip().lower() for part in value.split(",") if part.strip())
    return frozenset(result)


@dataclass(frozen=True)
class PatchFilter:
    """
    Predicate deciding whether a patch is accepted.

    Empty category/severity sets and a missing date accept everything.
    """

    categories: frozenset[str] = frozenset()
    severities: frozenset[str] = frozenset()
    issued_before: Optional[date] = None

    @classmethod
    def from_options(
        cls,
        categories: Optional[Iterable[str]] = None,
        severities: Optional[Iterable[str]] = None,
        issued_before: Optional[str | date] = None,
    ) -> PatchFilter:
        """
        Build a filter from command line values.

        Args:
            categories: Category names, comma separated values allowed
            severities: Severity names, comma separated values allowed
            issued_before: Date as YYYY-MM-DD or date object

        Raises:
            ValueError: If the date cannot be parsed
        """
        if isinstance(issued_before, str):
            issued_before = date.fromisoformat(issued_before)
        return cls(
            categories=_normalized(categories),
            severities=_normalized(severities),
            issued_before=issued_before,
        )

    @property
    def is_noop(self) -> bool:
        return not (self.categories or self.severities or self.issued_before)

    def __call__(self, patch: PatchRecord) -> bool:
        if self.categories and patch.category.lower() not in self.categories:
            return False
        if self.severities and patch.severity.lower() not in self.severities:
            return False
        if self.issued_before is not None:
            if patch.issued is None or patch.issued > self.issued_before:
                return False
        return True


ACCEPT_ALL = PatchFilter()
