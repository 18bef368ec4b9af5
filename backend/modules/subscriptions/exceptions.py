"""
Subscription module exceptions.
"""

from shared.exceptions import ValidationError


class InvalidScheduleError(ValidationError):
    """Raised when the maintenance schedule configuration is invalid."""

    def __init__(self, value: str):
        super().__init__(
            f"Invalid maintenance time {value!r}, expected HH:MM",
            code="INVALID_SCHEDULE",
            details={"value": value},
        )
