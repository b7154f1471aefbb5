"""
Exceptions raised by patch_advisor.
"""


class PatchAdvisorError(Exception):
    """Base class for all errors raised by this package."""


class SnapshotError(PatchAdvisorError):
    """The resource snapshot could not be read or is malformed."""


class QueryError(PatchAdvisorError):
    """The query engine or resolver failed to answer a request."""


class InvalidArgumentsError(PatchAdvisorError):
    """Command line options conflict with each other."""
