"""
Pytest configuration and fixtures for patch_advisor tests.
"""

from datetime import date
from pathlib import Path
from tempfile import TemporaryDirectory

import pytest
import yaml

from patch_advisor.models import (
    InteractiveFlag,
    PatchRecord,
    ReferenceEntry,
    Repository,
    ResKind,
    Resource,
    ValidationState,
)
from patch_advisor.pool import ResourcePool
from patch_advisor.snapshot import SnapshotLoader
from patch_advisor.versions import Edition

UPDATE_REPO = Repository(alias="update", name="Update Repository", url="https://example.com/update")


@pytest.fixture
def temp_dir():
    """Provide a temporary directory for tests."""
    with TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def make_patch():
    """Factory for patch records."""

    def _make_patch(
        name,
        references=(),
        validation=ValidationState.BROKEN,
        locked=False,
        category="recommended",
        severity="moderate",
        summary="",
        description="",
        flags=InteractiveFlag.NONE,
        restart_suggested=False,
        issued=None,
    ):
        return PatchRecord(
            name=name,
            edition=Edition("1"),
            repository=UPDATE_REPO,
            category=category,
            severity=severity,
            summary=summary or f"Update for {name}",
            description=description,
            issued=issued,
            stored_flags=flags,
            restart_suggested=restart_suggested,
            references=tuple(ReferenceEntry(t, i) for t, i in references),
            validation=validation,
            locked=locked,
        )

    return _make_patch


@pytest.fixture
def make_resource():
    """Factory for installed and available resources."""

    def _make_resource(
        name,
        edition,
        installed=False,
        kind=ResKind.PACKAGE,
        arch="x86_64",
        repository=UPDATE_REPO,
        locked=False,
        requires=(),
    ):
        return Resource(
            kind=kind,
            name=name,
            edition=Edition.parse(edition),
            arch=arch,
            repository=repository,
            installed=installed,
            locked=locked,
            requires=tuple(requires),
        )

    return _make_resource


@pytest.fixture
def snapshot_data():
    """Provide a sample snapshot mapping."""
    return {
        "repositories": [
            {
                "alias": "update",
                "name": "Update Repository",
                "url": "https://example.com/update",
                "priority": 90,
            },
            {
                "alias": "oss",
                "name": "Main Repository",
                "url": "https://example.com/oss",
            },
        ],
        "installed": [
            {"name": "bash", "version": "5.1.8", "release": "6.el9", "arch": "x86_64"},
            {"name": "openssl", "epoch": 1, "version": "3.0.7", "release": "24.el9", "arch": "x86_64"},
            {"name": "kernel", "version": "5.14.0", "release": "427.13.1.el9_4", "arch": "x86_64"},
            {"name": "vim", "version": "9.0", "release": "1", "arch": "x86_64", "locked": True},
            {"kind": "pattern", "name": "base", "edition": "1-1", "arch": "x86_64"},
            {"kind": "product", "name": "sles", "edition": "15.5-1", "arch": "x86_64"},
        ],
        "available": [
            {"name": "bash", "version": "5.1.8", "release": "9.el9", "arch": "x86_64", "repo": "update"},
            {"name": "bash", "version": "5.1.8", "release": "7.el9", "arch": "x86_64", "repo": "oss"},
            {
                "name": "openssl",
                "epoch": 1,
                "version": "3.0.7",
                "release": "27.el9",
                "arch": "x86_64",
                "repo": "update",
                "requires": ["libnew"],
            },
            {"name": "libnew", "version": "1.0", "release": "1", "arch": "x86_64", "repo": "update"},
            {"name": "kernel", "version": "5.14.0", "release": "427.13.1.el9_4", "arch": "x86_64", "repo": "oss"},
            {"name": "vim", "version": "9.1", "release": "1", "arch": "x86_64", "repo": "update"},
            {"name": "httpd", "version": "2.4.57", "release": "5.el9", "arch": "x86_64", "repo": "oss"},
            {"kind": "pattern", "name": "base", "edition": "2-1", "arch": "x86_64", "repo": "oss"},
            {"kind": "product", "name": "sles", "edition": "15.4-1", "arch": "x86_64", "repo": "oss"},
        ],
        "patches": [
            {
                "name": "SUSE-2024-101",
                "edition": "1",
                "repo": "update",
                "category": "security",
                "severity": "critical",
                "summary": "Security update for openssl",
                "validation": "broken",
                "issued": date(2024, 2, 1),
                "references": [
                    {"type": "cve", "id": "CVE-2024-0001"},
                    {"type": "bugzilla", "id": "1220001"},
                ],
            },
            {
                "name": "SUSE-2024-102",
                "edition": "1",
                "repo": "update",
                "category": "recommended",
                "severity": "moderate",
                "summary": "Recommended update for bash",
                "description": "Fixes a crash reported in bsc#1230099.",
                "validation": "broken",
                "issued": "2024-03-01",
                "references": [{"type": "bugzilla", "id": "1220002"}],
            },
            {
                "name": "SUSE-2024-103",
                "edition": "1",
                "repo": "update",
                "category": "recommended",
                "severity": "important",
                "summary": "Recommended update for the update stack",
                "validation": "broken",
                "restart_suggested": True,
                "interactive": ["message"],
                "references": [{"type": "bugzilla", "id": "1220003"}],
            },
            {
                "name": "SUSE-2024-104",
                "edition": "1",
                "repo": "update",
                "category": "security",
                "severity": "important",
                "summary": "Security update for the kernel",
                "validation": "broken",
                "locked": True,
                "interactive": ["reboot"],
                "references": [{"type": "cve", "id": "CVE-2024-0002"}],
            },
            {
                "name": "SUSE-2023-050",
                "edition": "1",
                "repo": "update",
                "category": "security",
                "severity": "low",
                "validation": "satisfied",
                "references": [{"type": "cve", "id": "CVE-2023-1111"}],
            },
            {
                "name": "SUSE-2023-051",
                "edition": "1",
                "repo": "update",
                "category": "optional",
                "severity": "low",
                "validation": "nonrelevant",
                "references": [{"type": "bugzilla", "id": "1100000"}],
            },
        ],
    }


@pytest.fixture
def sample_pool(snapshot_data):
    """Provide a pool built from the sample snapshot."""
    return ResourcePool.from_snapshot(SnapshotLoader(snapshot_data).load())


@pytest.fixture
def snapshot_file(temp_dir, snapshot_data):
    """Write the sample snapshot as YAML."""
    path = temp_dir / "snapshot.yaml"
    with open(path, "w") as f:
        yaml.safe_dump(snapshot_data, f)
    return path


@pytest.fixture
def issue_pool(make_patch):
    """One needed patch referencing a CVE and a bugzilla issue."""
    return ResourcePool(
        patches=[
            make_patch(
                "SUSE-2024-201",
                references=[("cve", "CVE-2024-0001"), ("bugzilla", "99999")],
            )
        ]
    )
