"""
Marking Patches by Issue

Requests installation of the patches fixing the issues given with
--bugzilla, --bz, --cve and --issues, reporting per issue whether a fix was
found.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

from .exitcodes import ResultCode
from .issues import IssueRef
from .matcher import IssueMatcher, MatchMode
from .models import PatchRecord
from .pool import ResourcePool
from .requester import Feedback, PatchRequester, RequestOptions

logger = logging.getLogger(__name__)


class IssueState(Enum):
    PENDING = "pending"
    FOUND = "found"
    NOT_FOUND = "not-found"


@dataclass
class IssueOutcome:
    """What happened to one issue predicate."""

    issue: IssueRef
    state: IssueState = IssueState.PENDING
    requested: list[PatchRecord] = field(default_factory=list)
    feedback: list[Feedback] = field(default_factory=list)

    @property
    def message(self) -> str:
        if self.state is not IssueState.NOT_FOUND:
            names = ", ".join(p.name for p in self.requested)
            return f"Fix for {_describe(self.issue)} found: {names}."
        issue_id = self.issue.id or "(any)"
        if self.issue.type == "bugzilla":
            return f"Fix for bugzilla issue number {issue_id} was not found or is not needed."
        if self.issue.type == "cve":
            return f"Fix for CVE issue number {issue_id} was not found or is not needed."
        if self.issue.type:
            return f"Fix for {self.issue.type} issue number {issue_id} was not found or is not needed."
        return f"Fix for issue number {issue_id} was not found or is not needed."


def _describe(issue: IssueRef) -> str:
    if issue.type == "cve":
        return f"CVE issue number {issue.id or '(any)'}"
    if issue.type:
        return f"{issue.type} issue number {issue.id or '(any)'}"
    return f"issue number {issue.id or '(any)'}"


@dataclass
class MarkingReport:
    """Outcomes of all issue predicates and the merged result code."""

    outcomes: list[IssueOutcome] = field(default_factory=list)
    result: ResultCode = ResultCode.OK

    @property
    def requested(self) -> list[PatchRecord]:
        seen: list[PatchRecord] = []
        for outcome in self.outcomes:
            for patch in outcome.requested:
                if patch not in seen:
                    seen.append(patch)
        return seen

    @property
    def not_found(self) -> list[IssueOutcome]:
        return [o for o in self.outcomes if o.state is IssueState.NOT_FOUND]


class IssueMarkingOrchestrator:
    """
    Marks the fixes of issues for installation.

    Matching runs in marking mode: exact ids, no text search, and locked
    patches are still requested so the requester decides about --force.
    The acceptance filter is part of the request options and therefore
    applied by the requester.
    """

    def __init__(self, pool: ResourcePool, options: RequestOptions | None = None):
        self.pool = pool
        self.options = options or RequestOptions()
        self.matcher = IssueMatcher(pool, MatchMode.MARKING)

    def run(self, issues: Iterable[IssueRef]) -> MarkingReport:
        report = MarkingReport()
        for issue in issues:
            outcome = self.mark_issue(issue)
            report.outcomes.append(outcome)
            if outcome.state is IssueState.NOT_FOUND:
                logger.info(outcome.message)
                report.result = report.result.merge(ResultCode.INF_CAP_NOT_FOUND)
        return report

    def mark_issue(self, issue: IssueRef) -> IssueOutcome:
        """Request every patch matching one predicate."""
        outcome = IssueOutcome(issue)
        requester = PatchRequester(self.pool, self.options)

        matches, _ = self.matcher.match_issue(issue)
        for match in matches:
            logger.debug(f"got: {match.patch} for {match.ref_type}#{match.ref_id}")
            if requester.install_patch(match.patch):
                if match.patch not in outcome.requested:
                    outcome.requested.append(match.patch)
            else:
                logger.debug(
                    f"fix for {issue.type} issue number {issue.id} was not marked."
                )

        outcome.feedback = list(requester.feedback)
        outcome.state = IssueState.FOUND if outcome.requested else IssueState.NOT_FOUND
        return outcome
