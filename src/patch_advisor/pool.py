"""
Resource Pool

In-memory, point-in-time view of installed and available resources and
patches. Answers the attribute queries, version lookups and update plans
the matching and selection code relies on, and records install requests.

Attribute queries OR-combine their conditions, the same way the solver
pool queries of the package manager do; callers needing AND semantics must
post-filter the returned references.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from .exceptions import QueryError
from .models import PatchRecord, ReferenceEntry, Repository, ResKind, Resource, Snapshot
from .versions import is_newer

logger = logging.getLogger(__name__)

REFERENCE_TYPE = "updateReferenceType"
REFERENCE_ID = "updateReferenceId"
SUMMARY = "summary"
DESCRIPTION = "description"

REFERENCE_ATTRIBUTES = (REFERENCE_TYPE, REFERENCE_ID)
TEXT_ATTRIBUTES = (SUMMARY, DESCRIPTION)

Item = Union[Resource, PatchRecord]


class StringMatch(Enum):
    """How query values are compared against attribute values."""

    SUBSTRING = "substring"
    EXACT = "exact"

    def matches(self, value: str, needle: str, case_insensitive: bool = True) -> bool:
        if case_insensitive:
            value, needle = value.casefold(), needle.casefold()
        if self is StringMatch.EXACT:
            return value == needle
        return needle in value


@dataclass(frozen=True)
class QueryHit:
    """A patch returned by a reference query and the entries that matched."""

    patch: PatchRecord
    references: tuple[ReferenceEntry, ...]


@dataclass(frozen=True)
class PlanEntry:
    """An item considered by the update planner."""

    item: Resource
    selected: bool


class ResourcePool:
    """
    Snapshot of the resolver pool.

    Args:
        resources: Installed and available resources of any kind
        patches: Patch records
        repositories: Known repositories by alias
    """

    def __init__(
        self,
        resources: Iterable[Resource] = (),
        patches: Iterable[PatchRecord] = (),
        repositories: Optional[dict[str, Repository]] = None,
    ):
        self.repositories = dict(repositories or {})
        self._installed: dict[tuple[ResKind, str], list[Resource]] = {}
        self._available: dict[tuple[ResKind, str], list[Resource]] = {}
        self._patches: list[PatchRecord] = list(patches)
        self._to_install: dict[tuple[ResKind, str], Item] = {}

        for resource in resources:
            index = self._installed if resource.installed else self._available
            index.setdefault(resource.ident, []).append(resource)

    @classmethod
    def from_snapshot(cls, snapshot: Snapshot) -> ResourcePool:
        logger.debug(f"Building pool from snapshot: {snapshot.to_dict()}")
        return cls(snapshot.resources, snapshot.patches, snapshot.repositories)

    # Lookups

    @property
    def patches(self) -> list[PatchRecord]:
        return list(self._patches)

    def installed(self, kind: ResKind) -> list[Resource]:
        """Installed object of every identity of the given kind."""
        result = []
        for ident in self._installed:
            if ident[0] == kind:
                installed = self.installed_object(*ident)
                if installed is not None:
                    result.append(installed)
        return result

    def installed_object(self, kind: ResKind, name: str) -> Optional[Resource]:
        """Return the installed item of an identity, the newest if several."""
        candidates = self._installed.get((kind, name))
        if not candidates:
            return None
        return max(candidates, key=lambda r: r.edition)

    def has_installed(self, kind: ResKind, name: str) -> bool:
        return bool(self._installed.get((kind, name)))

    def available(self, kind: ResKind, name: str) -> list[Resource]:
        return list(self._available.get((kind, name), []))

    def highest_available_version(
        self, kind: ResKind, name: str, unlocked_only: bool = False
    ) -> Optional[Resource]:
        """
        Return the newest available item of an identity.

        Among equal editions, the one matching the installed architecture
        and then the one from the higher priority repository (lower number)
        is preferred. With unlocked_only, locked items are never returned.
        """
        candidates = self._available.get((kind, name), [])
        if unlocked_only:
            candidates = [r for r in candidates if not r.locked]
        if not candidates:
            return None
        installed = self.installed_object(kind, name)
        installed_arch = installed.arch if installed else None
        return max(
            candidates,
            key=lambda r: (r.edition, r.arch == installed_arch, -r.repository.priority),
        )

    # Queries

    def query_patches(
        self,
        conditions: Sequence[tuple[str, str]],
        match: StringMatch = StringMatch.SUBSTRING,
        case_insensitive: bool = True,
    ) -> list[QueryHit]:
        """
        Query patch references.

        Args:
            conditions: (attribute, value) pairs, OR-combined; attribute is
                REFERENCE_TYPE or REFERENCE_ID
            match: String comparison to apply
            case_insensitive: Whether to ignore case

        Returns:
            One QueryHit per patch with at least one matching reference,
            in pool order

        Raises:
            QueryError: For unsupported attributes or an empty condition list
        """
        if not conditions:
            raise QueryError("Query without conditions")
        for attribute, _ in conditions:
            if attribute not in REFERENCE_ATTRIBUTES:
                raise QueryError(f"Unsupported reference attribute: {attribute}")

        hits = []
        for patch in self._patches:
            matched = tuple(
                ref
                for ref in patch.references
                if any(
                    match.matches(_reference_value(ref, attribute), value, case_insensitive)
                    for attribute, value in conditions
                )
            )
            if matched:
                hits.append(QueryHit(patch, matched))

        logger.debug(f"Query {conditions} ({match.value}): {len(hits)} patches")
        return hits

    def query_free_text(
        self,
        needle: str,
        fields: Sequence[str] = TEXT_ATTRIBUTES,
        match: StringMatch = StringMatch.SUBSTRING,
        case_insensitive: bool = True,
    ) -> list[PatchRecord]:
        """Return patches whose summary or description contain needle."""
        for attribute in fields:
            if attribute not in TEXT_ATTRIBUTES:
                raise QueryError(f"Unsupported text attribute: {attribute}")

        return [
            patch
            for patch in self._patches
            if any(
                match.matches(getattr(patch, attribute), needle, case_insensitive)
                for attribute in fields
            )
        ]

    # Resolver

    def best_effort_update_plan(self) -> list[PlanEntry]:
        """
        Propose an update of everything installed.

        Every unlocked installed identity is updated to its newest available
        version; resources required by a selected item and not installed yet
        are pulled in as new installs. The pool itself is not modified.

        Returns:
            PlanEntry for every available item, selected or not
        """
        selected: dict[tuple[ResKind, str], Resource] = {}

        for ident, installed_items in self._installed.items():
            installed = max(installed_items, key=lambda r: r.edition)
            if installed.locked:
                logger.debug(f"{installed} is locked, not updating")
                continue
            candidate = self.highest_available_version(*ident, unlocked_only=True)
            if candidate is not None and is_newer(candidate, installed):
                selected[ident] = candidate

        pending = list(selected.values())
        while pending:
            item = pending.pop()
            for required in item.requires:
                ident = (ResKind.PACKAGE, required)
                if ident in selected or self.has_installed(*ident):
                    continue
                candidate = self.highest_available_version(*ident, unlocked_only=True)
                if candidate is None:
                    if self._available.get(ident):
                        logger.debug(f"Every provider of {required} is locked")
                    else:
                        logger.warning(f"Nothing provides {required} needed by {item}")
                    continue
                selected[ident] = candidate
                pending.append(candidate)

        chosen = set(selected.values())
        return [
            PlanEntry(item, item in chosen)
            for items in self._available.values()
            for item in items
        ]

    def set_to_install(self, item: Item) -> bool:
        """
        Mark an item for installation.

        Returns:
            True if the item was newly marked, False if it already was
        """
        ident = item.ident
        if self._to_install.get(ident) == item:
            return False
        self._to_install[ident] = item
        return True

    def is_to_install(self, item: Item) -> bool:
        return self._to_install.get(item.ident) == item

    @property
    def to_install(self) -> list[Item]:
        return list(self._to_install.values())


def _reference_value(ref: ReferenceEntry, attribute: str) -> str:
    if attribute == REFERENCE_TYPE:
        return ref.ref_type
    return ref.ref_id
