"""
Patch Requester

Front of the resolver request API: validates a patch install request
against the request options and, if it passes, marks the patch for
installation in the pool. Every decision is recorded as feedback for the
operator.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from .models import InteractiveFlag, PatchRecord
from .pool import ResourcePool
from .status import PatchStatus, patch_status

logger = logging.getLogger(__name__)


class FeedbackId(Enum):
    SET_TO_INSTALL = "set-to-install"
    PATCH_NOT_NEEDED = "patch-not-needed"
    PATCH_UNWANTED = "patch-unwanted"
    PATCH_INTERACTIVE_SKIPPED = "patch-interactive-skipped"
    PATCH_NOT_IN_FILTER = "patch-not-in-filter"


_MESSAGES = {
    FeedbackId.SET_TO_INSTALL: "Patch '{name}' is marked for installation.",
    FeedbackId.PATCH_NOT_NEEDED: "Patch '{name}' is not needed.",
    FeedbackId.PATCH_UNWANTED: "Patch '{name}' is locked. Use '--force' to install it, or unlock it.",
    FeedbackId.PATCH_INTERACTIVE_SKIPPED: "Patch '{name}' is interactive, skipping.",
    FeedbackId.PATCH_NOT_IN_FILTER: "Patch '{name}' does not match the specified patch filter.",
}


@dataclass(frozen=True)
class Feedback:
    id: FeedbackId
    patch: PatchRecord

    @property
    def message(self) -> str:
        return _MESSAGES[self.id].format(name=self.patch.name)

    @property
    def is_error(self) -> bool:
        return self.id is not FeedbackId.SET_TO_INSTALL


@dataclass
class RequestOptions:
    """
    Options of a patch request.

    Attributes:
        force: Install locked patches as well
        skip_interactive: Refuse patches needing interaction
        patch_filter: Acceptance predicate the patch must satisfy
        ignore_flags: Interactive flags not counted as interactive
            (licenses already agreed, reboots handled non-interactively)
    """

    force: bool = False
    skip_interactive: bool = False
    patch_filter: Optional[Callable[[PatchRecord], bool]] = None
    ignore_flags: InteractiveFlag = InteractiveFlag.NONE


@dataclass
class PatchRequester:
    """Issues patch install requests against a pool."""

    pool: ResourcePool
    options: RequestOptions = field(default_factory=RequestOptions)
    feedback: list[Feedback] = field(default_factory=list)

    def install_patch(self, patch: PatchRecord) -> bool:
        """
        Request installation of a patch.

        Requesting a patch that is already marked succeeds without further
        effect.

        Returns:
            True if the patch is marked for installation
        """
        if self.pool.is_to_install(patch):
            logger.debug(f"{patch} already marked for installation")
            return True

        status = patch_status(patch)
        if status not in (PatchStatus.NEEDED, PatchStatus.LOCKED):
            return self._refuse(FeedbackId.PATCH_NOT_NEEDED, patch)

        if self.options.patch_filter is not None and not self.options.patch_filter(patch):
            return self._refuse(FeedbackId.PATCH_NOT_IN_FILTER, patch)

        if status is PatchStatus.LOCKED and not self.options.force:
            return self._refuse(FeedbackId.PATCH_UNWANTED, patch)

        if self.options.skip_interactive and patch.interactive_when_ignoring(
            self.options.ignore_flags
        ):
            return self._refuse(FeedbackId.PATCH_INTERACTIVE_SKIPPED, patch)

        self.pool.set_to_install(patch)
        self.feedback.append(Feedback(FeedbackId.SET_TO_INSTALL, patch))
        logger.info(f"{patch} marked for installation")
        return True

    def _refuse(self, feedback_id: FeedbackId, patch: PatchRecord) -> bool:
        logger.debug(f"{patch} not marked: {feedback_id.value}")
        feedback = Feedback(feedback_id, patch)
        if feedback not in self.feedback:
            self.feedback.append(feedback)
        return False
