"""
Patch Status

Maps a patch's validation state and lock flag to the status shown to the
operator and used to decide applicability.
"""

from __future__ import annotations

from enum import Enum

from .models import PatchRecord, ValidationState


class PatchStatus(Enum):
    """Closed set of patch statuses."""

    NEEDED = "needed"
    LOCKED = "locked"
    APPLIED = "applied"
    NOT_NEEDED = "not-needed"
    UNDETERMINED = "undetermined"

    @property
    def label(self) -> str:
        """Label for table output."""
        return _LABELS[self]

    @property
    def xml_label(self) -> str:
        """Label for the XML update list."""
        return _XML_LABELS[self]


_LABELS = {
    PatchStatus.NEEDED: "needed",
    PatchStatus.LOCKED: "unwanted",
    PatchStatus.APPLIED: "applied",
    PatchStatus.NOT_NEEDED: "not needed",
    PatchStatus.UNDETERMINED: "undetermined",
}

_XML_LABELS = {
    PatchStatus.NEEDED: "needed",
    PatchStatus.LOCKED: "unwanted",
    PatchStatus.APPLIED: "applied",
    PatchStatus.NOT_NEEDED: "not-needed",
    PatchStatus.UNDETERMINED: "undetermined",
}


def classify(validation: ValidationState | str | None, locked: bool) -> PatchStatus:
    """
    Derive the status of a patch.

    Args:
        validation: Validation state reported by the resolver
        locked: Whether the patch is locked (unwanted)

    Returns:
        LOCKED or NEEDED for broken patches, APPLIED for satisfied,
        NOT_NEEDED for non-relevant and UNDETERMINED for anything else
    """
    if validation == ValidationState.BROKEN:
        return PatchStatus.LOCKED if locked else PatchStatus.NEEDED
    if validation == ValidationState.SATISFIED:
        return PatchStatus.APPLIED
    if validation == ValidationState.NONRELEVANT:
        return PatchStatus.NOT_NEEDED
    return PatchStatus.UNDETERMINED


def patch_status(patch: PatchRecord) -> PatchStatus:
    return classify(patch.validation, patch.locked)


def is_applicable(patch: PatchRecord) -> bool:
    """Needed and not locked: the default content of every patch list."""
    return patch_status(patch) is PatchStatus.NEEDED


def is_broken(patch: PatchRecord) -> bool:
    """Needed, whether locked or not."""
    return patch.validation == ValidationState.BROKEN
