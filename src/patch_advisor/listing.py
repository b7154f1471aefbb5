"""
Patch and Update Listings

Collects the data shown by the patch-check, list-patches and list-updates
commands. Patches that affect the update stack itself (restart suggested)
take priority: they are listed first and, while any is pending, updates of
other kinds are not listed at all.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from .models import PatchRecord, ResKind
from .pool import ResourcePool
from .status import PatchStatus, is_applicable, is_broken, patch_status
from .updates import UpdateCandidateSelector, UpdateListing

logger = logging.getLogger(__name__)

SECURITY_CATEGORY = "security"


@dataclass
class PatchCheckSummary:
    """Counts reported by patch-check."""

    needed: int = 0
    security: int = 0
    locked: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"needed": self.needed, "security": self.security, "locked": self.locked}


def patch_check(pool: ResourcePool, updatestack_only: bool = False) -> PatchCheckSummary:
    """
    Count needed patches.

    Args:
        pool: Pool to inspect
        updatestack_only: Count only patches affecting the update stack

    Returns:
        PatchCheckSummary; locked patches are counted separately and never
        as needed
    """
    summary = PatchCheckSummary()
    for patch in pool.patches:
        if not is_broken(patch):
            continue
        if patch.locked:
            summary.locked += 1
            continue
        if updatestack_only and not patch.restart_suggested:
            continue
        summary.needed += 1
        if patch.category.lower() == SECURITY_CATEGORY:
            summary.security += 1
    return summary


@dataclass(frozen=True)
class PatchRow:
    patch: PatchRecord
    status: PatchStatus


@dataclass
class PatchListing:
    """
    Patches to show, split by priority.

    Attributes:
        update_stack: Applicable patches affecting the update stack, to be
            installed first (always empty with include_all)
        other: Every other listed patch
        include_all: Whether not needed patches were included
    """

    update_stack: list[PatchRow] = field(default_factory=list)
    other: list[PatchRow] = field(default_factory=list)
    include_all: bool = False
    total: int = 0

    @property
    def affects_package_manager(self) -> bool:
        return bool(self.update_stack)

    @property
    def empty(self) -> bool:
        return not self.update_stack and not self.other


def list_patches(
    pool: ResourcePool,
    include_all: bool = False,
    patch_filter: Optional[Callable[[PatchRecord], bool]] = None,
) -> PatchListing:
    """
    Collect the patches for list-patches.

    Args:
        pool: Pool to inspect
        include_all: Also list patches that are not needed
        patch_filter: Acceptance predicate

    Returns:
        PatchListing with both parts sorted by name
    """
    listing = PatchListing(include_all=include_all)
    for patch in pool.patches:
        listing.total += 1
        if not include_all and not is_applicable(patch):
            continue
        if patch_filter is not None and not patch_filter(patch):
            logger.debug(f"{patch} skipped. (not matching CLI filter)")
            continue
        row = PatchRow(patch, patch_status(patch))
        if not include_all and patch.restart_suggested:
            listing.update_stack.append(row)
        else:
            listing.other.append(row)

    listing.update_stack.sort(key=lambda r: r.patch.name)
    listing.other.sort(key=lambda r: r.patch.name)
    return listing


@dataclass
class UpdateOverview:
    """Everything list-updates shows."""

    patches: Optional[PatchListing] = None
    updates: UpdateListing = field(default_factory=UpdateListing)
    kinds: list[ResKind] = field(default_factory=list)

    @property
    def blocked(self) -> bool:
        """Other kinds are held back by pending update stack patches."""
        return self.patches is not None and self.patches.affects_package_manager


def list_updates(
    pool: ResourcePool,
    kinds: Iterable[ResKind],
    include_all: bool = False,
    patch_filter: Optional[Callable[[PatchRecord], bool]] = None,
) -> UpdateOverview:
    """
    Collect the data for list-updates.

    Patches are listed first. Other kinds are only computed if no pending
    patch affects the package manager.
    """
    kinds = [ResKind(k) for k in kinds]
    overview = UpdateOverview(kinds=kinds)
    other_kinds = [k for k in kinds if k is not ResKind.PATCH]

    if ResKind.PATCH in kinds:
        overview.patches = list_patches(pool, include_all, patch_filter)
        if overview.blocked:
            logger.info("Update stack patches pending, other updates are not listed")
            return overview

    if other_kinds:
        overview.updates = UpdateCandidateSelector(pool, include_all).find_updates(other_kinds)
    elif not kinds:
        logger.warning("called with empty kinds set")
    return overview
