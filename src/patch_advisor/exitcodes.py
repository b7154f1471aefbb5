"""
Command Result Codes

Exit codes of the command line front end and how results of independent
steps combine into the code of the whole command.
"""

from __future__ import annotations

from enum import IntEnum


class ResultCode(IntEnum):
    """Process exit codes."""

    OK = 0
    ERR_BUG = 1
    ERR_SYNTAX = 2
    ERR_INVALID_ARGS = 3
    ERR_QUERY = 4
    INF_CAP_NOT_FOUND = 104

    @property
    def is_error(self) -> bool:
        return 0 < self.value < 100

    def merge(self, other: ResultCode) -> ResultCode:
        """
        Combine two results.

        Errors win over informational codes, which win over OK. Among codes
        of the same rank the earlier one is kept, so a result never drops
        back once it has been raised.
        """
        if _rank(other) > _rank(self):
            return other
        return self


def _rank(code: ResultCode) -> int:
    if code.is_error:
        return 2
    if code is ResultCode.OK:
        return 0
    return 1
