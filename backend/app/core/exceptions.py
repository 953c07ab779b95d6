class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class SchedulerError(AppError):
    """Raised when a scheduling request cannot be acted on in the current state."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)

class ResourceNotFoundError(AppError):
    """Raised when a referenced section, teacher, subject or entry does not exist."""
    def __init__(self, resource_type: str, resource_id: str, code: str = "NotFound"):
        super().__init__(
            f"{resource_type} with id {resource_id} not found",
            status_code=404,
            details={"code": code, "resource": resource_type, "id": resource_id},
        )

class ConfigurationInvalidError(AppError):
    """Raised when an academic configuration has one or more invalid fields."""
    def __init__(self, violations: list[dict]):
        super().__init__(
            "Academic configuration is invalid",
            status_code=422,
            details={"code": "ConfigInvalid", "violations": violations},
        )

class InvalidSlotError(AppError):
    """Raised when a day, period, room or time range falls outside the allowed values."""
    def __init__(self, code: str, message: str, field: str):
        super().__init__(message, status_code=422, details={"code": code, "field": field})

class SlotConflictError(AppError):
    """Raised when a teacher, room or section slot is already occupied."""
    def __init__(self, message: str, resource: str, day: str, period: int, conflicting_section_id: str | None = None):
        super().__init__(
            message,
            status_code=409,
            details={
                "code": "SlotConflict",
                "resource": resource,
                "day": day,
                "period": period,
                "conflicting_section_id": conflicting_section_id,
            },
        )

class InfeasibleScheduleError(AppError):
    """Raised when generation exhausts its backtracking budget."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=422, details={"code": "Infeasible", **(details or {})})

class ConcurrentScheduleConflictError(AppError):
    """Raised when a uniqueness constraint trips at persist time; the caller should regenerate."""
    def __init__(self, message: str = "Timetable changed while it was being saved; regenerate and retry"):
        super().__init__(message, status_code=409, details={"code": "ConcurrentScheduleConflict"})

class TimetableExistsError(AppError):
    """Raised when a section already has a live timetable and overwriting was not requested."""
    def __init__(self, section_id: str, entry_count: int):
        super().__init__(
            "Section already has a timetable; set overwrite_existing to replace it",
            status_code=409,
            details={"code": "TimetableExists", "section_id": section_id, "entries": entry_count},
        )
