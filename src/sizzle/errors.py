"""Error types raised by the sizzle pipeline."""


class SizzleError(Exception):
    """Base class for all pipeline errors."""


class InvalidInputError(SizzleError, ValueError):
    """Raised when a scene or manifest is structurally unusable."""


class InvalidArgumentError(SizzleError, ValueError):
    """Raised when a call receives arguments it cannot act on.

    Examples are an empty scene list or an unknown style pack name.
    """


class CatalogError(SizzleError):
    """Raised when catalog data cannot be loaded or cross-referenced."""


class PlanningError(SizzleError):
    """Raised when the planner assembles a manifest that fails validation."""
