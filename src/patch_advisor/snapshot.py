"""
Snapshot Loading

Reads a YAML or JSON snapshot of the repository metadata and the installed
system into model objects.

Expected layout:

    repositories:
      - {alias: update, name: Update Repository, url: ..., priority: 99}
    installed:
      - {kind: package, name: bash, version: 5.1.8, release: 6.el9, arch: x86_64}
    available:
      - {name: bash, version: 5.1.8, release: 9.el9, arch: x86_64, repo: update}
    patches:
      - name: SUSE-2024-101
        edition: "1"
        repo: update
        category: security
        severity: critical
        validation: broken
        references:
          - {type: cve, id: CVE-2024-0001}
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any

import yaml

from .exceptions import SnapshotError
from .models import (
    SYSTEM_REPOSITORY,
    PatchRecord,
    ReferenceEntry,
    Repository,
    ResKind,
    Resource,
    Snapshot,
    ValidationState,
    parse_interactive_flags,
)
from .pool import ResourcePool
from .versions import Edition

logger = logging.getLogger(__name__)


def _edition(entry: dict) -> Edition:
    if "edition" in entry:
        return Edition.parse(str(entry["edition"]))
    return Edition(
        version=str(entry["version"]),
        release=str(entry.get("release", "")),
        epoch=entry.get("epoch", 0),
    )


def _issued(value: Any) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


class SnapshotLoader:
    """Converts the raw snapshot mapping into a Snapshot."""

    def __init__(self, data: dict):
        self.data = data
        self.repositories: dict[str, Repository] = {}

    def load(self) -> Snapshot:
        for entry in self.data.get("repositories") or []:
            repo = Repository(
                alias=entry["alias"],
                name=entry.get("name", ""),
                url=entry.get("url", ""),
                priority=int(entry.get("priority", 99)),
            )
            self.repositories[repo.alias] = repo

        resources = [
            self.resource(entry, installed=True)
            for entry in self.data.get("installed") or []
        ]
        resources.extend(
            self.resource(entry, installed=False)
            for entry in self.data.get("available") or []
        )
        patches = [self.patch(entry) for entry in self.data.get("patches") or []]

        return Snapshot(self.repositories, resources, patches)

    def repository(self, alias: str | None) -> Repository:
        if not alias:
            return SYSTEM_REPOSITORY
        if alias not in self.repositories:
            logger.warning(f"Unknown repository '{alias}', adding it")
            self.repositories[alias] = Repository(alias=alias)
        return self.repositories[alias]

    def resource(self, entry: dict, installed: bool) -> Resource:
        return Resource(
            kind=ResKind(entry.get("kind", "package")),
            name=entry["name"],
            edition=_edition(entry),
            arch=entry.get("arch", "noarch"),
            repository=SYSTEM_REPOSITORY if installed else self.repository(entry.get("repo")),
            installed=installed,
            locked=bool(entry.get("locked", False)),
            summary=entry.get("summary", ""),
            description=entry.get("description", ""),
            license=entry.get("license", ""),
            requires=tuple(entry.get("requires") or ()),
        )

    def patch(self, entry: dict) -> PatchRecord:
        references = tuple(
            ReferenceEntry(
                ref_type=str(ref["type"]),
                ref_id=str(ref["id"]),
                title=ref.get("title", ""),
                href=ref.get("href", ""),
            )
            for ref in entry.get("references") or []
        )
        return PatchRecord(
            name=entry["name"],
            edition=_edition(entry),
            arch=entry.get("arch", "noarch"),
            repository=self.repository(entry.get("repo")),
            category=entry.get("category", ""),
            severity=entry.get("severity", ""),
            summary=entry.get("summary", ""),
            description=entry.get("description", ""),
            license=entry.get("license", ""),
            issued=_issued(entry.get("issued")),
            stored_flags=parse_interactive_flags(entry.get("interactive") or []),
            restart_suggested=bool(entry.get("restart_suggested", False)),
            references=references,
            validation=ValidationState(entry.get("validation", "undetermined")),
            locked=bool(entry.get("locked", False)),
        )


def load_snapshot(path: str | Path) -> Snapshot:
    """
    Load a snapshot file.

    Args:
        path: YAML or JSON file

    Returns:
        Snapshot

    Raises:
        SnapshotError: If the file is missing, unreadable or malformed
    """
    path = Path(path)
    if not path.exists():
        raise SnapshotError(f"Snapshot not found: {path}")

    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise SnapshotError(f"Cannot parse snapshot {path}: {e}") from e

    if not isinstance(data, dict):
        raise SnapshotError(f"Snapshot {path} must contain a mapping")

    try:
        snapshot = SnapshotLoader(data).load()
    except (KeyError, TypeError, ValueError) as e:
        raise SnapshotError(f"Malformed snapshot {path}: {e!r}") from e

    logger.info(f"Loaded snapshot {path}: {snapshot.to_dict()}")
    return snapshot


def load_pool(path: str | Path) -> ResourcePool:
    """Load a snapshot file straight into a ResourcePool."""
    return ResourcePool.from_snapshot(load_snapshot(path))
