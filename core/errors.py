class GuardError(Exception):
    """Base error for the machine guard engine."""


class ReportValidationError(GuardError, ValueError):
    """A single sensor report carries malformed fields."""

    def __init__(self, message, out_of_range=False):
        super().__init__(message)
        self.out_of_range = out_of_range


class StoreError(GuardError, RuntimeError):
    """Transient failure of the backing issue store."""


class InvalidTransitionError(GuardError, ValueError):
    """Issue status change not allowed by the repair workflow."""
