from utils.error.base_custom_error import BaseCustomError


class VelocityError(BaseCustomError):
    """
    Base exception for team velocity reporting.
    """


class VelocityConfigError(VelocityError):
    """
    Raised at startup for malformed employee tenure specs, team files or report options.
    Always raised before any tracker call.
    """

    def __init__(self, message: str = "Invalid velocity configuration", **metadata):
        super().__init__(message, **metadata)


class PeriodAggregationError(VelocityError):
    """
    Raised when a tracker call fails while aggregating one employee and window.
    Carries the employee, the window key and the JQL that was being resolved.
    """

    def __init__(self, message: str = "Failed to aggregate period", **metadata):
        super().__init__(message, **metadata)
