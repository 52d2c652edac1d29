from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from registrar.api.deps import get_current_user, get_db, require_roles
from registrar.models.user import User, UserRole
from registrar.schemas.schedule import (
    ConflictPairOut,
    ScheduleConflictCheck,
    ScheduleConflictOut,
    ScheduleConflictReport,
    ScheduleCreate,
    ScheduleOut,
    ScheduleUpdate,
)
from registrar.services.schedules import ScheduleService

router = APIRouter()


@router.get("/", response_model=list[ScheduleOut])
def list_schedules(
    teacher_id: str | None = Query(default=None),
    section_id: str | None = Query(default=None),
    period_id: str | None = Query(default=None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[ScheduleOut]:
    service = ScheduleService(db)
    return list(service.list_schedules(teacher_id=teacher_id, section_id=section_id, period_id=period_id))


@router.post("/check-conflicts", response_model=ScheduleConflictReport)
def check_conflicts(
    payload: ScheduleConflictCheck,
    current_user: User = Depends(require_roles(UserRole.admin, UserRole.adviser, UserRole.teacher)),
    db: Session = Depends(get_db),
) -> ScheduleConflictReport:
    conflicts = ScheduleService(db).check_schedule_conflicts(
        payload.to_candidate(),
        exclude_id=payload.exclude_schedule_id,
    )
    return ScheduleConflictReport(
        has_conflicts=bool(conflicts),
        conflicts=[ScheduleConflictOut.model_validate(item) for item in conflicts],
    )


@router.get("/conflicts", response_model=list[ConflictPairOut])
def list_existing_conflicts(
    period_id: str | None = Query(default=None),
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> list[ConflictPairOut]:
    return [ConflictPairOut.model_validate(pair) for pair in ScheduleService(db).find_existing_conflicts(period_id=period_id)]


@router.get("/{schedule_id}", response_model=ScheduleOut)
def get_schedule(
    schedule_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ScheduleOut:
    return ScheduleService(db).get_schedule(schedule_id)


@router.post("/", response_model=ScheduleOut, status_code=status.HTTP_201_CREATED)
def create_schedule(
    payload: ScheduleCreate,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> ScheduleOut:
    return ScheduleService(db).create_schedule(
        payload.to_candidate(),
        actor_id=current_user.id,
        expected_section_version=payload.expected_section_version,
    )


@router.put("/{schedule_id}", response_model=ScheduleOut)
def update_schedule(
    schedule_id: str,
    payload: ScheduleUpdate,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> ScheduleOut:
    return ScheduleService(db).update_schedule(
        schedule_id,
        payload.to_candidate(),
        actor_id=current_user.id,
        expected_section_version=payload.expected_section_version,
    )


@router.delete("/{schedule_id}")
def delete_schedule(
    schedule_id: str,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> dict:
    ScheduleService(db).delete_schedule(schedule_id, actor_id=current_user.id)
    return {"success": True}
