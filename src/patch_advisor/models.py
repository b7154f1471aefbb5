"""
Resource Models

Read-only projections of the repository metadata: repositories, resources
of every kind, and patches with their issue references.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum, Flag
from typing import Any, Optional

from .versions import Edition


class ResKind(str, Enum):
    """Resource kinds known to the pool."""

    PACKAGE = "package"
    PATCH = "patch"
    PATTERN = "pattern"
    PRODUCT = "product"

    def __str__(self) -> str:
        return self.value

    @property
    def updates_title(self) -> str:
        """Heading used when listing updates of this kind."""
        return {
            ResKind.PACKAGE: "Package updates",
            ResKind.PATCH: "Patches",
            ResKind.PATTERN: "Pattern updates",
            ResKind.PRODUCT: "Product updates",
        }[self]


class ValidationState(str, Enum):
    """Solver validation state of a patch."""

    BROKEN = "broken"
    SATISFIED = "satisfied"
    NONRELEVANT = "nonrelevant"
    UNDETERMINED = "undetermined"


class InteractiveFlag(Flag):
    """Reasons a patch needs user interaction."""

    NONE = 0
    REBOOT = 0x1
    MESSAGE = 0x2
    LICENSE = 0x4
    # Not stored in metadata: set for patches affecting the update stack
    RESTART = 0x1000


INTERACTIVE_LABELS = (
    (InteractiveFlag.REBOOT, "reboot"),
    (InteractiveFlag.MESSAGE, "message"),
    (InteractiveFlag.LICENSE, "licence"),
    (InteractiveFlag.RESTART, "restart"),
)

_STORED_FLAGS = {
    "reboot": InteractiveFlag.REBOOT,
    "message": InteractiveFlag.MESSAGE,
    "license": InteractiveFlag.LICENSE,
    "licence": InteractiveFlag.LICENSE,
}


def parse_interactive_flags(names: list[str]) -> InteractiveFlag:
    """
    Convert metadata flag names to an InteractiveFlag.

    Raises:
        ValueError: For unknown names, including the derived 'restart'
    """
    flags = InteractiveFlag.NONE
    for name in names:
        try:
            flags |= _STORED_FLAGS[name.lower()]
        except KeyError:
            raise ValueError(f"Unknown interactive flag: {name}") from None
    return flags


@dataclass(frozen=True)
class Repository:
    """A repository the resources originate from."""

    alias: str
    name: str = ""
    url: str = ""
    priority: int = 99

    def as_user_string(self) -> str:
        return self.name or self.alias


SYSTEM_REPOSITORY = Repository(alias="@System", name="@System")


@dataclass(frozen=True)
class Resource:
    """
    A single installable or installed item.

    Attributes:
        kind: Resource kind
        name: Resource name
        edition: Edition of this item
        arch: Architecture
        repository: Originating repository (@System for installed items)
        installed: Whether this item is the installed one
        locked: Whether the item is locked against changes
        requires: Names of resources this item needs
    """

    kind: ResKind
    name: str
    edition: Edition
    arch: str
    repository: Repository = SYSTEM_REPOSITORY
    installed: bool = False
    locked: bool = False
    summary: str = ""
    description: str = ""
    license: str = ""
    requires: tuple[str, ...] = ()

    @property
    def ident(self) -> tuple[ResKind, str]:
        """Identity shared by all versions of the same resource."""
        return (self.kind, self.name)

    @property
    def nvra(self) -> str:
        return f"{self.name}-{self.edition}.{self.arch}"

    def __str__(self) -> str:
        return f"{self.kind}:{self.nvra}"


@dataclass(frozen=True)
class ReferenceEntry:
    """An issue tracker cross-reference of a patch."""

    ref_type: str
    ref_id: str
    title: str = ""
    href: str = ""


@dataclass(frozen=True)
class PatchRecord:
    """
    A patch and the metadata needed to list or request it.

    The validation state and lock flag are inputs to
    :func:`patch_advisor.status.classify`; the status itself is never stored.
    """

    name: str
    edition: Edition
    arch: str = "noarch"
    repository: Repository = SYSTEM_REPOSITORY
    category: str = ""
    severity: str = ""
    summary: str = ""
    description: str = ""
    license: str = ""
    issued: Optional[date] = None
    stored_flags: InteractiveFlag = InteractiveFlag.NONE
    restart_suggested: bool = False
    references: tuple[ReferenceEntry, ...] = ()
    validation: ValidationState = ValidationState.UNDETERMINED
    locked: bool = False

    @property
    def kind(self) -> ResKind:
        return ResKind.PATCH

    @property
    def ident(self) -> tuple[ResKind, str]:
        return (ResKind.PATCH, self.name)

    @property
    def interactive_flags(self) -> InteractiveFlag:
        """Stored flags plus the derived RESTART flag."""
        flags = self.stored_flags
        if self.restart_suggested:
            flags |= InteractiveFlag.RESTART
        return flags

    @property
    def reboot_suggested(self) -> bool:
        return bool(self.stored_flags & InteractiveFlag.REBOOT)

    def interactive_when_ignoring(self, ignore: InteractiveFlag) -> bool:
        """Return True if the patch stays interactive once ignore is masked out."""
        return bool(self.stored_flags & ~ignore)

    def __str__(self) -> str:
        return f"patch:{self.name}-{self.edition}.{self.arch}"


@dataclass
class Snapshot:
    """Raw contents of a snapshot file, before the pool indexes them."""

    repositories: dict[str, Repository] = field(default_factory=dict)
    resources: list[Resource] = field(default_factory=list)
    patches: list[PatchRecord] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Summary counts, used for debug output."""
        return {
            "repositories": len(self.repositories),
            "installed": sum(1 for r in self.resources if r.installed),
            "available": sum(1 for r in self.resources if not r.installed),
            "patches": len(self.patches),
        }
