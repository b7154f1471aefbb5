"""
Update Candidates

Computes, per resource kind, the available items that are upgrades of
what is installed.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Optional

from .models import ResKind, Resource
from .pool import ResourcePool
from .versions import is_newer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UpdateCandidate:
    """An available update and the installed item it replaces."""

    item: Resource
    installed: Optional[Resource] = None

    @property
    def name(self) -> str:
        return self.item.name

    @property
    def kind(self) -> ResKind:
        return self.item.kind

    @property
    def new_edition(self) -> str:
        return str(self.item.edition)

    @property
    def old_edition(self) -> Optional[str]:
        return str(self.installed.edition) if self.installed else None

    @property
    def new_arch(self) -> str:
        return self.item.arch

    @property
    def old_arch(self) -> Optional[str]:
        return self.installed.arch if self.installed else None

    @property
    def repository(self) -> str:
        return self.item.repository.as_user_string()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "kind": str(self.kind),
            "repository": self.repository,
            "installed": {
                "edition": self.old_edition,
                "arch": self.old_arch,
            },
            "available": {
                "edition": self.new_edition,
                "arch": self.new_arch,
            },
        }


@dataclass
class UpdateListing:
    """Update candidates of several kinds."""

    candidates: dict[ResKind, list[UpdateCandidate]] = field(default_factory=dict)

    @property
    def update_count(self) -> int:
        """Return number of available updates."""
        return sum(len(c) for c in self.candidates.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "update_count": self.update_count,
            "updates": {
                str(kind): [c.to_dict() for c in candidates]
                for kind, candidates in self.candidates.items()
            },
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)


class UpdateCandidateSelector:
    """
    Selects update candidates.

    Packages can require and conflict with each other, so unless all
    updates are requested they are taken from the resolver's best-effort
    update plan. Every other kind, and packages with include_all, are
    compared version by version.
    """

    def __init__(self, pool: ResourcePool, include_all: bool = False):
        """
        Initialize the selector.

        Args:
            pool: Pool to look up installed and available items in
            include_all: List every newer version, whether installable
                together or not
        """
        self.pool = pool
        self.include_all = include_all

    def find_updates(self, kinds: Iterable[ResKind]) -> UpdateListing:
        """
        Find all available updates of the given kinds.

        Returns:
            UpdateListing with one candidate list per kind
        """
        listing = UpdateListing()
        for kind in kinds:
            kind = ResKind(kind)
            listing.candidates[kind] = self.find_updates_for_kind(kind)

        if not listing.candidates:
            logger.warning("called with empty kinds set")
        return listing

    def find_updates_for_kind(self, kind: ResKind) -> list[UpdateCandidate]:
        """Find the update candidates of one kind, sorted by name."""
        logger.debug(f"Looking for update candidates of kind {kind}")

        if kind is ResKind.PACKAGE and not self.include_all:
            candidates = self._planned_updates()
        else:
            candidates = self._newest_versions(kind)

        return sorted(candidates, key=lambda c: (c.name, c.item.arch))

    def _planned_updates(self) -> list[UpdateCandidate]:
        candidates = []
        for entry in self.pool.best_effort_update_plan():
            item = entry.item
            if item.kind is not ResKind.PACKAGE or not entry.selected:
                continue
            # new installs pulled in by the plan are not updates
            installed = self.pool.installed_object(item.kind, item.name)
            if installed is None:
                logger.debug(f"{item} is not installed yet, skipped")
                continue
            candidates.append(UpdateCandidate(item, installed))
        return candidates

    def _newest_versions(self, kind: ResKind) -> list[UpdateCandidate]:
        candidates = []
        for installed in self.pool.installed(kind):
            candidate = self.pool.highest_available_version(kind, installed.name)
            if candidate is None:
                continue
            if not is_newer(candidate, installed):
                continue
            logger.debug(f"selectable: {installed}, candidate: {candidate}")
            candidates.append(UpdateCandidate(candidate, installed))
        return candidates
