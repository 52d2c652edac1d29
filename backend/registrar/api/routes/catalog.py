from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from registrar.api.deps import get_current_user, get_db, require_roles
from registrar.core.exceptions import DuplicateResourceError
from registrar.models.academic_period import AcademicPeriod
from registrar.models.room import Room
from registrar.models.subject import Subject
from registrar.models.user import User, UserRole
from registrar.schemas.catalog import (
    AcademicPeriodCreate,
    AcademicPeriodOut,
    RoomCreate,
    RoomOut,
    SubjectCreate,
    SubjectOut,
)

router = APIRouter()


@router.get("/subjects", response_model=list[SubjectOut])
def list_subjects(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> list[SubjectOut]:
    return list(db.execute(select(Subject).order_by(Subject.code)).scalars())


@router.post("/subjects", response_model=SubjectOut, status_code=status.HTTP_201_CREATED)
def create_subject(
    payload: SubjectCreate,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> SubjectOut:
    existing = db.execute(select(Subject).where(Subject.code == payload.code)).scalar_one_or_none()
    if existing:
        raise DuplicateResourceError("Subject", "code", payload.code)
    subject = Subject(**payload.model_dump())
    db.add(subject)
    db.commit()
    db.refresh(subject)
    return subject


@router.get("/rooms", response_model=list[RoomOut])
def list_rooms(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> list[RoomOut]:
    return list(db.execute(select(Room).order_by(Room.name)).scalars())


@router.post("/rooms", response_model=RoomOut, status_code=status.HTTP_201_CREATED)
def create_room(
    payload: RoomCreate,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> RoomOut:
    existing = db.execute(select(Room).where(Room.name == payload.name)).scalar_one_or_none()
    if existing:
        raise DuplicateResourceError("Room", "name", payload.name)
    room = Room(**payload.model_dump())
    db.add(room)
    db.commit()
    db.refresh(room)
    return room


@router.get("/periods", response_model=list[AcademicPeriodOut])
def list_periods(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[AcademicPeriodOut]:
    statement = select(AcademicPeriod).order_by(AcademicPeriod.school_year, AcademicPeriod.quarter)
    return list(db.execute(statement).scalars())


@router.post("/periods", response_model=AcademicPeriodOut, status_code=status.HTTP_201_CREATED)
def create_period(
    payload: AcademicPeriodCreate,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> AcademicPeriodOut:
    existing = db.execute(
        select(AcademicPeriod).where(
            AcademicPeriod.school_year == payload.school_year,
            AcademicPeriod.quarter == payload.quarter,
        )
    ).scalar_one_or_none()
    if existing:
        raise DuplicateResourceError("AcademicPeriod", "quarter", f"{payload.school_year} {payload.quarter.value}")
    if payload.is_active:
        for period in db.execute(select(AcademicPeriod).where(AcademicPeriod.is_active.is_(True))).scalars():
            period.is_active = False
    period = AcademicPeriod(**payload.model_dump())
    db.add(period)
    db.commit()
    db.refresh(period)
    return period
