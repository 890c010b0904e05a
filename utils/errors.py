"""Exception taxonomy for the import pipeline.

Fatal conditions abort the whole run and are reported to the caller as a
terminal outcome.  ``HostError`` is the per-record failure raised by the host
document model; stages catch it per paragraph, table or hyperlink and move on.
"""


class ImportFlowError(Exception):
    """Base class for every fatal pipeline error."""


class UserCancelled(ImportFlowError):
    """No input was selected; nothing has been changed."""


class InputMissing(ImportFlowError):
    """The selected input does not exist or cannot be read."""


class StructuralPrecondition(ImportFlowError):
    """No target document is open, or no story could be resolved."""


class PaginationError(StructuralPrecondition):
    """The container chain cannot be grown until the story fits."""


class HostError(Exception):
    """A single host object operation failed (per-record failure)."""
