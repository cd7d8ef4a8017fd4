class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class PlacementError(AppError):
    """Raised when a candidate event cannot be placed on the timetable grid."""
    def __init__(self, message: str, status_code: int = 400, details: dict = None):
        super().__init__(message, status_code=status_code, details=details)


class InvalidTimeRangeError(PlacementError):
    """Raised when the end slot does not come after the start slot."""
    def __init__(self, start_time: str, end_time: str):
        self.start_time = start_time
        self.end_time = end_time
        super().__init__(
            f"End time {end_time} must be after start time {start_time}",
            details={"startTime": start_time, "endTime": end_time},
        )


class InvalidSessionTypeError(PlacementError):
    """Raised when a lab session is requested for a subject without a lab component."""
    def __init__(self, subject_name: str, session_type: str):
        self.subject_name = subject_name
        self.session_type = session_type
        super().__init__(
            f'Subject "{subject_name}" does not have a lab component',
            details={"subjectName": subject_name, "sessionType": session_type},
        )


class HoursExceededError(PlacementError):
    """Raised when a placement would push a subject past its required hours."""
    def __init__(self, subject_label: str, session_type: str, required_hours: float, total_hours: float):
        self.subject_label = subject_label
        self.session_type = session_type
        self.required_hours = required_hours
        self.total_hours = total_hours
        super().__init__(
            f"{subject_label} ({session_type.upper()}) would be scheduled for {total_hours:g}h "
            f"but requires only {required_hours:g}h",
            details={
                "subject": subject_label,
                "sessionType": session_type,
                "requiredHours": required_hours,
                "totalHours": total_hours,
                "excessHours": total_hours - required_hours,
            },
        )


class ConflictError(PlacementError):
    """Base for placements rejected because of overlapping bookings."""
    def __init__(self, message: str, conflicts: list):
        self.conflicts = list(conflicts)
        super().__init__(
            message,
            status_code=409,
            details={"conflicts": [conflict.to_dict() for conflict in self.conflicts]},
        )


class InternalConflictError(ConflictError):
    """Raised when the candidate overlaps another event in the grid being edited."""
    def __init__(self, conflicts: list):
        first = conflicts[0]
        super().__init__(f"Schedule conflict with {first.subject}", conflicts)


class ExternalConflictError(ConflictError):
    """Raised when the candidate overlaps an event from another persisted schedule."""
    def __init__(self, conflicts: list):
        first = conflicts[0]
        super().__init__(f"Schedule conflict with {first.schedule_name}: {first.subject}", conflicts)


class DataIntegrityError(AppError):
    """Raised when persisted data references something the grid cannot resolve."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=422, details=details)


class DataIntegrityWarning(UserWarning):
    """Non-fatal record of a malformed event skipped while loading or saving."""
    def __init__(self, reason: str, event: dict | None = None):
        self.reason = reason
        self.event = dict(event or {})
        super().__init__(reason)


class ScheduleValidationError(AppError):
    """Raised when a schedule document fails server-side validation."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)


class PersistenceError(AppError):
    """Raised when a collaborator API call or schedule save fails."""
    def __init__(self, message: str, status_code: int = 502, violations: list | None = None, details: dict = None):
        self.violations = list(violations or [])
        super().__init__(message, status_code=status_code, details=details)

    def describe(self) -> str:
        if not self.violations:
            return self.message
        lines = [self.message]
        for violation in self.violations:
            lines.append(
                f"- {violation.subject_code} {violation.subject_name} ({violation.session_type.upper()}): "
                f"scheduled {violation.scheduled_hours:g}h, required {violation.required_hours:g}h, "
                f"excess {violation.excess_hours:g}h"
            )
        return "\n".join(lines)
