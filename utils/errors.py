class NotFoundError(LookupError):
    """A student, halaqa, chapter or record the caller referenced does not exist."""


class ValidationError(ValueError):
    """Input rejected before any work was done (bad ranges, missing scope)."""
