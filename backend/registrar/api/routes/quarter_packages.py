from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from registrar.api.deps import get_current_user, get_db, require_roles
from registrar.models.quarter_package import PackageStatus
from registrar.models.user import User, UserRole
from registrar.schemas.quarter_package import (
    PackageReturnRequest,
    PackageTransitionRequest,
    QuarterPackageCreate,
    QuarterPackageOut,
    RecordApprovalOut,
)
from registrar.services.quarter_packages import QuarterPackageService

router = APIRouter()

staff_only = require_roles(UserRole.admin, UserRole.adviser, UserRole.teacher)


@router.get("/", response_model=list[QuarterPackageOut])
def list_packages(
    section_id: str | None = Query(default=None),
    quarter: str | None = Query(default=None),
    package_status: PackageStatus | None = Query(default=None, alias="status"),
    adviser_id: str | None = Query(default=None),
    current_user: User = Depends(staff_only),
    db: Session = Depends(get_db),
) -> list[QuarterPackageOut]:
    service = QuarterPackageService(db)
    return list(
        service.list_packages(
            section_id=section_id,
            quarter=quarter,
            status=package_status,
            adviser_id=adviser_id,
        )
    )


@router.post("/", response_model=QuarterPackageOut, status_code=status.HTTP_201_CREATED)
def create_package(
    payload: QuarterPackageCreate,
    current_user: User = Depends(require_roles(UserRole.admin, UserRole.adviser)),
    db: Session = Depends(get_db),
) -> QuarterPackageOut:
    return QuarterPackageService(db).create_package(current_user, payload.section_id, payload.quarter)


@router.get("/{package_id}", response_model=QuarterPackageOut)
def get_package(
    package_id: str,
    current_user: User = Depends(staff_only),
    db: Session = Depends(get_db),
) -> QuarterPackageOut:
    return QuarterPackageService(db).get_package(package_id)


@router.get("/{package_id}/approvals", response_model=list[RecordApprovalOut])
def list_package_approvals(
    package_id: str,
    current_user: User = Depends(staff_only),
    db: Session = Depends(get_db),
) -> list[RecordApprovalOut]:
    return list(QuarterPackageService(db).list_approvals(package_id))


@router.get("/{package_id}/actions", response_model=list[str])
def list_package_actions(
    package_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[str]:
    service = QuarterPackageService(db)
    package = service.get_package(package_id)
    return [action.value for action in service.actions_for(current_user, package)]


@router.delete("/{package_id}")
def delete_package(
    package_id: str,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> dict:
    QuarterPackageService(db).delete_package(current_user, package_id)
    return {"success": True}


@router.post("/sections/{section_id}/{quarter}/submit", response_model=QuarterPackageOut)
def submit_package(
    section_id: str,
    quarter: str,
    payload: PackageTransitionRequest | None = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> QuarterPackageOut:
    payload = payload or PackageTransitionRequest()
    return QuarterPackageService(db).submit_package(
        current_user,
        section_id,
        quarter,
        expected_section_version=payload.expected_section_version,
    )


@router.post("/sections/{section_id}/{quarter}/approve", response_model=QuarterPackageOut)
def approve_package(
    section_id: str,
    quarter: str,
    payload: PackageTransitionRequest | None = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> QuarterPackageOut:
    payload = payload or PackageTransitionRequest()
    return QuarterPackageService(db).approve_package(
        current_user,
        section_id,
        quarter,
        payload.remarks,
        expected_section_version=payload.expected_section_version,
    )


@router.post("/sections/{section_id}/{quarter}/return", response_model=QuarterPackageOut)
def return_package(
    section_id: str,
    quarter: str,
    payload: PackageReturnRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> QuarterPackageOut:
    return QuarterPackageService(db).return_package(
        current_user,
        section_id,
        quarter,
        payload.remarks,
        expected_section_version=payload.expected_section_version,
    )


@router.post("/sections/{section_id}/{quarter}/forward", response_model=QuarterPackageOut)
def forward_package(
    section_id: str,
    quarter: str,
    payload: PackageTransitionRequest | None = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> QuarterPackageOut:
    payload = payload or PackageTransitionRequest()
    return QuarterPackageService(db).forward_to_admin(
        current_user,
        section_id,
        quarter,
        expected_section_version=payload.expected_section_version,
    )


@router.post("/sections/{section_id}/{quarter}/publish", response_model=QuarterPackageOut)
def publish_package(
    section_id: str,
    quarter: str,
    payload: PackageTransitionRequest | None = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> QuarterPackageOut:
    payload = payload or PackageTransitionRequest()
    return QuarterPackageService(db).publish_package(
        current_user,
        section_id,
        quarter,
        payload.remarks,
        expected_section_version=payload.expected_section_version,
    )
