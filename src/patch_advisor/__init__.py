"""
Patch Advisor

Determines which installed software needs updating, classifies patches and
cross-references pending fixes with issue trackers (bugzilla, CVE).
"""

from .issues import IssueRef, IssueSpecSet
from .marking import IssueMarkingOrchestrator, IssueOutcome, IssueState, MarkingReport
from .matcher import FallbackMatch, IssueMatch, IssueMatcher, MatchMode, MatchResult
from .pool import ResourcePool
from .status import PatchStatus, classify, is_applicable
from .updates import UpdateCandidate, UpdateCandidateSelector
from .versions import Edition, compare_by_nvra

__all__ = [
    "Edition",
    "FallbackMatch",
    "IssueMarkingOrchestrator",
    "IssueMatch",
    "IssueMatcher",
    "IssueOutcome",
    "IssueRef",
    "IssueSpecSet",
    "IssueState",
    "MarkingReport",
    "MatchMode",
    "MatchResult",
    "PatchStatus",
    "ResourcePool",
    "UpdateCandidate",
    "UpdateCandidateSelector",
    "classify",
    "compare_by_nvra",
    "is_applicable",
]

__version__ = "1.0.0"
