class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} with id {resource_id} not found",
            status_code=404,
            details={"resource": resource_type, "id": resource_id},
        )

class ScopeValidationError(AppError):
    """Raised when a request is rejected before touching the store."""
    def __init__(self, message: str, field: str | None = None):
        super().__init__(message, status_code=400, details={"field": field} if field else None)

class DuplicateResourceError(AppError):
    """Raised when a unique business key is already taken."""
    def __init__(self, message: str, field: str | None = None):
        super().__init__(message, status_code=409, details={"field": field} if field else None)

class RelatedRecordsError(AppError):
    """Raised when a delete would orphan dependent rows."""
    def __init__(self, message: str, counts: dict[str, int]):
        super().__init__(message, status_code=409, details={"counts": counts})

class SlotOccupiedError(AppError):
    """Raised when a grid copy targets a cell that already holds a class."""
    def __init__(self, day: str, start_time: str, end_time: str):
        super().__init__(
            "This time slot already has a class scheduled",
            status_code=409,
            details={"day": day, "startTime": start_time, "endTime": end_time},
        )

class ImportFormatError(AppError):
    """Raised when an uploaded bulk import sheet cannot be used."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)

class ServiceUnavailableError(AppError):
    """Raised when a backing store cannot answer a request."""
    def __init__(self, message: str):
        super().__init__(message, status_code=503)
