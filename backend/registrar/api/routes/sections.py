from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from registrar.api.deps import get_current_user, get_db, require_roles
from registrar.core.exceptions import ResourceNotFoundError
from registrar.models.section import Section
from registrar.models.user import User, UserRole
from registrar.schemas.section import SectionCreate, SectionOut, SectionUpdate
from registrar.services import sections as section_service

router = APIRouter()


@router.get("/", response_model=list[SectionOut])
def list_sections(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> list[SectionOut]:
    return list(db.execute(select(Section).order_by(Section.name)).scalars())


@router.get("/{section_id}", response_model=SectionOut)
def get_section(
    section_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SectionOut:
    section = db.get(Section, section_id)
    if section is None:
        raise ResourceNotFoundError("Section", section_id)
    return section


@router.post("/", response_model=SectionOut, status_code=status.HTTP_201_CREATED)
def create_section(
    payload: SectionCreate,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> SectionOut:
    return section_service.create_section(db, actor_id=current_user.id, data=payload.model_dump())


@router.put("/{section_id}", response_model=SectionOut)
def update_section(
    section_id: str,
    payload: SectionUpdate,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> SectionOut:
    changes = payload.model_dump(exclude_unset=True, exclude={"version"})
    return section_service.update_section(
        db,
        section_id,
        actor_id=current_user.id,
        expected_version=payload.version,
        changes=changes,
    )


@router.delete("/{section_id}")
def delete_section(
    section_id: str,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> dict:
    section_service.delete_section(db, section_id, actor_id=current_user.id)
    return {"success": True}
