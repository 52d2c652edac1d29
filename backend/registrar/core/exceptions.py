from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from registrar.services.schedule_conflicts import ScheduleConflict


class AppError(Exception):
    """Base class for all application exceptions.

    ``code`` names the error kind; the HTTP layer decides how to render it.
    """

    code = "app_error"

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(AppError):
    """Raised when input violates a business rule that schemas cannot express."""

    code = "validation_error"


class AuthenticationError(AppError):
    """Raised when a request carries no usable bearer token or login fails."""

    code = "not_authenticated"

    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(message)


class PermissionDeniedError(AppError):
    code = "forbidden"

    def __init__(self, message: str = "Insufficient permissions", *, required_roles: Sequence[str] = ()):
        details = {"required_roles": sorted(required_roles)} if required_roles else {}
        super().__init__(message, details=details)


class DuplicateResourceError(AppError):
    code = "already_exists"

    def __init__(self, resource_type: str, field: str, value: str):
        super().__init__(
            f"{resource_type} with {field} {value} already exists",
            details={"resource_type": resource_type, "field": field, "value": value},
        )


class ImmutableRecordError(AppError):
    """Raised on any attempt to change or remove an approval ledger entry."""

    code = "immutable_record"

    def __init__(self, record_type: str, record_id: str | None, operation: str):
        super().__init__(
            f"{record_type} {record_id} is append-only and cannot be {operation}",
            details={"record_type": record_type, "record_id": record_id, "operation": operation},
        )


class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""

    code = "not_found"

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} with id {resource_id} not found",
            details={"resource_type": resource_type, "resource_id": resource_id},
        )


class ConcurrentModificationError(AppError):
    """Raised when a section changed underneath an in-flight operation."""

    code = "concurrent_modification"

    def __init__(self, section_id: str, expected_version: int | None = None, actual_version: int | None = None):
        super().__init__(
            f"Section {section_id} was modified by another request; reload and try again",
            details={
                "section_id": section_id,
                "expected_version": expected_version,
                "actual_version": actual_version,
            },
        )


class SectionHasDependenciesError(AppError):
    code = "section_has_dependencies"

    def __init__(self, section_id: str, *, schedule_count: int, package_count: int):
        parts = []
        if schedule_count:
            parts.append(f"{schedule_count} schedule entry(ies)")
        if package_count:
            parts.append(f"{package_count} quarter package(s)")
        super().__init__(
            f"Cannot delete section {section_id} because it has dependent records: {' and '.join(parts)}",
            details={
                "section_id": section_id,
                "schedule_count": schedule_count,
                "package_count": package_count,
            },
        )


# Quarter package workflow


class WorkflowError(AppError):
    code = "workflow_error"


class InvalidTransitionError(WorkflowError):
    code = "invalid_transition"

    def __init__(self, current_state: str, action: str, package_id: str | None = None):
        self.current_state = current_state
        self.action = action
        super().__init__(
            f"Cannot {action} a quarter package in {current_state} status",
            details={"package_id": package_id, "current_state": current_state, "action": action},
        )


class UnauthorizedTransitionError(WorkflowError):
    code = "unauthorized_transition"

    def __init__(self, actor_id: str, action: str, required: str, current_state: str):
        self.actor_id = actor_id
        self.action = action
        self.required = required
        super().__init__(
            f"User {actor_id} may not {action} this quarter package; requires {required}",
            details={
                "actor_id": actor_id,
                "action": action,
                "required": required,
                "current_state": current_state,
            },
        )


class PackageNotFoundError(WorkflowError):
    code = "package_not_found"

    def __init__(self, *, section_id: str | None = None, quarter: str | None = None, package_id: str | None = None):
        if package_id is not None:
            message = f"Quarter package {package_id} not found"
        else:
            message = f"No quarter package for section {section_id} in {quarter}"
        super().__init__(
            message,
            details={"package_id": package_id, "section_id": section_id, "quarter": quarter},
        )


class PackageAlreadyExistsError(WorkflowError):
    code = "package_exists"

    def __init__(self, section_id: str, quarter: str):
        super().__init__(
            f"Quarter package already exists for section {section_id} in {quarter}",
            details={"section_id": section_id, "quarter": quarter},
        )


class PackageHasDependenciesError(WorkflowError):
    code = "package_has_dependencies"

    def __init__(self, package_id: str, approval_count: int):
        super().__init__(
            f"Quarter package {package_id} has {approval_count} approval record(s) and cannot be deleted",
            details={"package_id": package_id, "approval_count": approval_count},
        )


# Schedules


class InvalidIntervalError(AppError):
    code = "invalid_interval"

    def __init__(self, start, end):
        super().__init__(
            "Schedule end time must be after its start time",
            details={"start_time": start.isoformat(), "end_time": end.isoformat()},
        )


class TeacherLoadLimitError(AppError):
    code = "teacher_load_limit"

    def __init__(self, teacher_id: str, limit: int, scope: str):
        super().__init__(
            f"Teacher {teacher_id} already has the maximum of {limit} schedule(s) {scope}",
            details={"teacher_id": teacher_id, "limit": limit, "scope": scope},
        )


class ScheduleConflictError(AppError):
    """Raised when a schedule candidate overlaps existing commitments."""

    code = "schedule_conflict"
    dimension_label = "schedule"

    def __init__(self, conflicts: Sequence["ScheduleConflict"]):
        self.conflicts = list(conflicts)
        super().__init__(
            f"{self.dimension_label.capitalize()} conflict with {len(self.conflicts)} existing schedule(s)",
            details={"conflicts": [item.as_dict() for item in self.conflicts]},
        )


class TeacherScheduleConflictError(ScheduleConflictError):
    code = "teacher_schedule_conflict"
    dimension_label = "teacher"


class SectionScheduleConflictError(ScheduleConflictError):
    code = "section_schedule_conflict"
    dimension_label = "section"


class RoomScheduleConflictError(ScheduleConflictError):
    code = "room_schedule_conflict"
    dimension_label = "room"
