class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationFailedError(AppError):
    """Raised when a request value is well-formed JSON but semantically invalid."""
    def __init__(self, message: str, field: str | None = None):
        details = {"field": field} if field else None
        super().__init__(message, status_code=400, details=details)


class NoValidFieldsError(AppError):
    """Raised when an update payload carries none of the updatable fields."""
    def __init__(self):
        super().__init__("No valid fields to update", status_code=400)


class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} with id {resource_id} not found",
            status_code=404,
            details={"resource_type": resource_type, "resource_id": resource_id},
        )


class VersionCreationError(AppError):
    """Raised when the version creation transaction had to be rolled back."""
    def __init__(self):
        super().__init__("Failed to create timetable version", status_code=500)


class ScheduleConflictError(AppError):
    """Raised when conflict enforcement is enabled and a write would double-book."""
    def __init__(self, conflicts: list[dict]):
        super().__init__(
            "Schedule conflicts with existing bookings",
            status_code=409,
            details={"conflicts": conflicts},
        )


class ConfigurationError(AppError):
    """Raised when system configuration is invalid."""
    def __init__(self, message: str):
        super().__init__(message, status_code=500)
