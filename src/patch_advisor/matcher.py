"""
Issue Matcher

Finds the patches fixing a set of tracked issues.

The pool query engine OR-combines attribute conditions, so a query for a
reference type and id cannot require both to hold for the same reference.
Queries are used to narrow the candidates only; the references of every
hit are then checked against the predicate.

In listing mode, predicates with any type and a specific id also get a
second, lower confidence pass over patch summaries and descriptions. Those
fallback matches are informational and never used for installation.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from .issues import IssueRef
from .models import PatchRecord, ReferenceEntry
from .pool import REFERENCE_ID, REFERENCE_TYPE, ResourcePool, StringMatch
from .status import PatchStatus, is_applicable, is_broken, patch_status

logger = logging.getLogger(__name__)


class MatchMode(Enum):
    """Why patches are being matched."""

    LISTING = "listing"
    MARKING = "marking"

    @property
    def string_match(self) -> StringMatch:
        if self is MatchMode.MARKING:
            return StringMatch.EXACT
        return StringMatch.SUBSTRING


@dataclass(frozen=True)
class IssueMatch:
    """A verified reference of a patch matching an issue predicate."""

    issue: IssueRef
    reference: ReferenceEntry
    patch: PatchRecord
    status: PatchStatus

    @property
    def ref_type(self) -> str:
        return self.reference.ref_type

    @property
    def ref_id(self) -> str:
        return self.reference.ref_id


@dataclass(frozen=True)
class FallbackMatch:
    """A patch whose summary or description mentions an issue id."""

    issue: IssueRef
    patch: PatchRecord
    status: PatchStatus


@dataclass
class MatchResult:
    """
    Result of matching a set of predicates.

    Attributes:
        matches: Verified reference matches, sorted by reference id
        fallback: Text matches, sorted by patch name
        pass2: Predicates that were eligible for the text search
    """

    matches: list[IssueMatch] = field(default_factory=list)
    fallback: list[FallbackMatch] = field(default_factory=list)
    pass2: list[IssueRef] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return not self.matches and not self.fallback


class IssueMatcher:
    """
    Matches issue predicates against the patches of a pool.

    Args:
        pool: Pool to query
        mode: LISTING (substring, text fallback) or MARKING (exact)
        include_all: Listing only; also accept patches that are not needed
        patch_filter: Acceptance predicate applied to every hit
    """

    def __init__(
        self,
        pool: ResourcePool,
        mode: MatchMode = MatchMode.LISTING,
        include_all: bool = False,
        patch_filter: Optional[Callable[[PatchRecord], bool]] = None,
    ):
        self.pool = pool
        self.mode = mode
        self.include_all = include_all and mode is MatchMode.LISTING
        self.patch_filter = patch_filter

    def match(self, issues: Iterable[IssueRef]) -> MatchResult:
        """
        Match all predicates.

        Args:
            issues: Issue predicates, usually an IssueSpecSet

        Returns:
            MatchResult; fallback is always empty in marking mode
        """
        result = MatchResult()

        for issue in issues:
            matches, pass2_eligible = self.match_issue(issue)
            result.matches.extend(matches)
            if pass2_eligible:
                result.pass2.append(issue)

        for issue in result.pass2:
            result.fallback.extend(self.match_text(issue))

        result.matches.sort(key=lambda m: m.ref_id)
        result.fallback.sort(key=lambda m: m.patch.name)
        return result

    def match_issue(self, issue: IssueRef) -> tuple[list[IssueMatch], bool]:
        """
        Find verified reference matches for one predicate.

        Returns:
            The matches and whether the predicate qualifies for the text
            search pass
        """
        conditions, pass2_eligible = self.query_conditions(issue)
        logger.debug(f"Querying {issue}: {conditions}")

        matches = []
        for hit in self.pool.query_patches(conditions, self.mode.string_match):
            if not self.accepts(hit.patch):
                continue
            status = patch_status(hit.patch)
            for reference in hit.references:
                if self.reference_satisfies(issue, reference):
                    matches.append(IssueMatch(issue, reference, hit.patch, status))

        return matches, pass2_eligible

    def query_conditions(self, issue: IssueRef) -> tuple[list[tuple[str, str]], bool]:
        """Conditions narrowing the candidates of a predicate."""
        if issue.specific_type and issue.any_id:
            return [(REFERENCE_TYPE, issue.type)], False

        conditions = [(REFERENCE_ID, issue.id or "")]
        if self.mode is MatchMode.LISTING and issue.any_type and issue.specific_id:
            # a tracker name given as id, e.g. --issues=bugzilla
            conditions.append((REFERENCE_TYPE, issue.id))
            return conditions, True
        return conditions, False

    def reference_satisfies(self, issue: IssueRef, reference: ReferenceEntry) -> bool:
        """Check a reference returned by a query against every field of the predicate."""
        string_match = self.mode.string_match

        if issue.specific_type and reference.ref_type != issue.type:
            return False

        if issue.specific_id:
            if string_match.matches(reference.ref_id, issue.id):
                return True
            if issue.any_type and self.mode is MatchMode.LISTING:
                return string_match.matches(reference.ref_type, issue.id)
            return False

        return True

    def match_text(self, issue: IssueRef) -> list[FallbackMatch]:
        """Text search pass: patches mentioning the issue id in summary or description."""
        if self.mode is not MatchMode.LISTING or issue.any_id:
            return []

        return [
            FallbackMatch(issue, patch, patch_status(patch))
            for patch in self.pool.query_free_text(issue.id)
            if self.accepts(patch)
        ]

    def accepts(self, patch: PatchRecord) -> bool:
        if self.mode is MatchMode.MARKING:
            if not is_broken(patch):
                return False
        elif not self.include_all and not is_applicable(patch):
            return False

        if self.patch_filter is not None and not self.patch_filter(patch):
            logger.debug(f"{patch} skipped. (not matching CLI filter)")
            return False
        return True
