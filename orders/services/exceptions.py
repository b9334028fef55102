"""Order workflow errors that carry data for the API response."""


class InsufficientStockError(ValueError):
    """Raised when approval finds stock that cannot cover the order."""

    def __init__(self, message, items):
        super().__init__(message)
        self.items = items


class GroupVerdictError(ValueError):
    """Raised when a group verdict fails for one or more orders."""

    def __init__(self, message, failures):
        super().__init__(message)
        self.failures = failures
