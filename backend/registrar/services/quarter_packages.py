from __future__ import annotations

from datetime import datetime, timezone
import logging
from typing import Sequence

from sqlalchemy.orm import Session

from registrar.core.config import Settings, get_settings
from registrar.core.exceptions import (
    InvalidTransitionError,
    PackageAlreadyExistsError,
    PackageHasDependenciesError,
    PackageNotFoundError,
    ResourceNotFoundError,
    UnauthorizedTransitionError,
    ValidationError,
)
from registrar.models.academic_period import Quarter
from registrar.models.quarter_package import PackageStatus, QuarterPackage
from registrar.models.record_approval import RecordApproval
from registrar.models.section import Section
from registrar.models.user import User, UserRole
from registrar.repositories.base import PackageRepository, ScheduleRepository, SectionRepository
from registrar.repositories.packages import SqlAlchemyPackageRepository
from registrar.repositories.schedules import SqlAlchemyScheduleRepository
from registrar.repositories.sections import SqlAlchemySectionRepository
from registrar.services.audit import log_activity
from registrar.services.package_workflow import (
    Actor,
    PackageAction,
    TransitionRule,
    available_actions,
    resolve_transition,
)

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_quarter(value: Quarter | str) -> Quarter:
    try:
        return Quarter.parse(value)
    except ValueError as exc:
        raise ValidationError(str(exc), details={"quarter": str(value)}) from exc


def _normalize_remarks(value: str | None) -> str | None:
    if value is None:
        return None
    trimmed = value.strip()
    return trimmed or None


class QuarterPackageService:
    """Moves quarter packages through the review workflow.

    Every public mutation is one transaction: the status change, its ledger
    row, the section version bump and the audit entry commit together or not
    at all.
    """

    def __init__(
        self,
        db: Session,
        *,
        settings: Settings | None = None,
        packages: PackageRepository | None = None,
        schedules: ScheduleRepository | None = None,
        sections: SectionRepository | None = None,
    ):
        self._db = db
        self._settings = settings or get_settings()
        self._packages = packages or SqlAlchemyPackageRepository(db)
        self._schedules = schedules or SqlAlchemyScheduleRepository(db)
        self._sections = sections or SqlAlchemySectionRepository(db)

    # Queries

    def get_package(self, package_id: str) -> QuarterPackage:
        package = self._packages.get_package(package_id)
        if package is None:
            raise PackageNotFoundError(package_id=package_id)
        return package

    def find_package(self, section_id: str, quarter: Quarter | str) -> QuarterPackage:
        quarter = _parse_quarter(quarter)
        package = self._packages.find_package(section_id, quarter)
        if package is None:
            raise PackageNotFoundError(section_id=section_id, quarter=quarter.value)
        return package

    def list_packages(
        self,
        *,
        section_id: str | None = None,
        quarter: Quarter | str | None = None,
        status: PackageStatus | None = None,
        adviser_id: str | None = None,
    ) -> Sequence[QuarterPackage]:
        return self._packages.list_packages(
            section_id=section_id,
            quarter=_parse_quarter(quarter) if quarter is not None else None,
            status=status,
            adviser_id=adviser_id,
        )

    def list_approvals(self, package_id: str) -> Sequence[RecordApproval]:
        package = self.get_package(package_id)
        return self._packages.list_approvals(package.id)

    def actions_for(self, user: User, package: QuarterPackage) -> list[PackageAction]:
        section = self._require_section(package.section_id)
        return available_actions(package.status, self._resolve_actor(user, section))

    # Explicit lifecycle

    def create_package(self, user: User, section_id: str, quarter: Quarter | str) -> QuarterPackage:
        quarter = _parse_quarter(quarter)
        try:
            section = self._require_section(section_id, for_update=True)
            if user.role != UserRole.admin and section.adviser_id != user.id:
                raise UnauthorizedTransitionError(user.id, "create", "admin or section adviser", "NONE")
            if self._packages.find_package(section.id, quarter) is not None:
                raise PackageAlreadyExistsError(section.id, quarter.value)
            package = self._new_package(section, quarter)
            log_activity(
                self._db,
                user_id=user.id,
                action="quarter_package.create",
                entity_type="quarter_package",
                entity_id=package.id,
                details={"section_id": section.id, "quarter": quarter.value},
            )
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise
        self._db.refresh(package)
        logger.info("Created quarter package %s for section %s %s", package.id, section_id, quarter.value)
        return package

    def delete_package(self, user: User, package_id: str) -> None:
        try:
            package = self.get_package(package_id)
            if user.role != UserRole.admin:
                raise UnauthorizedTransitionError(user.id, "delete", "admin", package.status.value)
            approval_count = self._packages.count_approvals(package.id)
            if approval_count:
                raise PackageHasDependenciesError(package.id, approval_count)
            self._packages.delete_package(package)
            log_activity(
                self._db,
                user_id=user.id,
                action="quarter_package.delete",
                entity_type="quarter_package",
                entity_id=package_id,
                details={"section_id": package.section_id, "quarter": package.quarter.value},
            )
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise
        logger.info("Deleted quarter package %s", package_id)

    # Workflow transitions

    def submit_package(
        self,
        user: User,
        section_id: str,
        quarter: Quarter | str,
        *,
        expected_section_version: int | None = None,
    ) -> QuarterPackage:
        return self._transition(
            user,
            section_id,
            quarter,
            PackageAction.submit,
            expected_section_version=expected_section_version,
        )

    def approve_package(
        self,
        user: User,
        section_id: str,
        quarter: Quarter | str,
        remarks: str | None = None,
        *,
        expected_section_version: int | None = None,
    ) -> QuarterPackage:
        return self._transition(
            user,
            section_id,
            quarter,
            PackageAction.approve,
            remarks=remarks,
            expected_section_version=expected_section_version,
        )

    def return_package(
        self,
        user: User,
        section_id: str,
        quarter: Quarter | str,
        remarks: str,
        *,
        expected_section_version: int | None = None,
    ) -> QuarterPackage:
        return self._transition(
            user,
            section_id,
            quarter,
            PackageAction.return_,
            remarks=remarks,
            expected_section_version=expected_section_version,
        )

    def forward_to_admin(
        self,
        user: User,
        section_id: str,
        quarter: Quarter | str,
        *,
        expected_section_version: int | None = None,
    ) -> QuarterPackage:
        return self._transition(
            user,
            section_id,
            quarter,
            PackageAction.forward,
            expected_section_version=expected_section_version,
        )

    def publish_package(
        self,
        user: User,
        section_id: str,
        quarter: Quarter | str,
        remarks: str | None = None,
        *,
        expected_section_version: int | None = None,
    ) -> QuarterPackage:
        """Admin approval of a forwarded package; only valid from FORWARDED_TO_ADMIN."""
        return self._transition(
            user,
            section_id,
            quarter,
            PackageAction.approve,
            remarks=remarks,
            expected_section_version=expected_section_version,
            only_from=PackageStatus.FORWARDED_TO_ADMIN,
            label="publish",
        )

    # Internals

    def _transition(
        self,
        user: User,
        section_id: str,
        quarter: Quarter | str,
        action: PackageAction,
        *,
        remarks: str | None = None,
        expected_section_version: int | None = None,
        only_from: PackageStatus | None = None,
        label: str | None = None,
    ) -> QuarterPackage:
        quarter = _parse_quarter(quarter)
        remarks = _normalize_remarks(remarks)
        try:
            section = self._require_section(section_id, for_update=True)
            package = self._packages.find_package(section.id, quarter)
            if package is None:
                if action != PackageAction.submit or not self._settings.auto_create_package_on_submit:
                    raise PackageNotFoundError(section_id=section.id, quarter=quarter.value)
                package = self._new_package(section, quarter)

            actor = self._resolve_actor(user, section)
            if only_from is not None and package.status != only_from:
                raise InvalidTransitionError(package.status.value, label or action.value, package_id=package.id)
            rule = resolve_transition(package.status, action, actor, package_id=package.id)
            if rule.requires_remarks and not remarks:
                raise ValidationError(
                    "Remarks are required when returning a quarter package",
                    details={"package_id": package.id, "action": action.value},
                )

            self._sections.touch_section(section, expected_version=expected_section_version)
            previous = package.status
            self._apply(package, rule, actor, remarks)

            if package.status == PackageStatus.APPROVED and self._settings.auto_forward_on_approve:
                forward_rule = resolve_transition(package.status, PackageAction.forward, actor, package_id=package.id)
                self._apply(package, forward_rule, actor, None)

            log_activity(
                self._db,
                user_id=user.id,
                action=f"quarter_package.{label or action.value}",
                entity_type="quarter_package",
                entity_id=package.id,
                details={
                    "section_id": section.id,
                    "quarter": quarter.value,
                    "from": previous.value,
                    "to": package.status.value,
                    "remarks": remarks,
                },
            )
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise

        self._db.refresh(package)
        logger.info(
            "Quarter package %s (%s %s): %s by %s -> %s",
            package.id,
            section_id,
            quarter.value,
            label or action.value,
            user.id,
            package.status.value,
        )
        return package

    def _apply(self, package: QuarterPackage, rule: TransitionRule, actor: Actor, remarks: str | None) -> None:
        package.status = rule.target
        if rule.stamps_submission:
            package.submitted_at = _utc_now()
        if rule.target == PackageStatus.RETURNED:
            package.remarks = remarks
        if actor.advises_section:
            package.adviser_id = actor.id
        self._packages.save_package(package)
        if rule.ledger_action is not None:
            self._packages.append_approval(
                RecordApproval(
                    package_id=package.id,
                    approver_id=actor.id,
                    action=rule.ledger_action,
                    remarks=remarks,
                )
            )

    def _new_package(self, section: Section, quarter: Quarter) -> QuarterPackage:
        package = QuarterPackage(
            section_id=section.id,
            quarter=quarter,
            status=PackageStatus.PENDING,
            adviser_id=section.adviser_id,
        )
        return self._packages.save_package(package)

    def _require_section(self, section_id: str, *, for_update: bool = False) -> Section:
        section = self._sections.get_section(section_id, for_update=for_update)
        if section is None:
            raise ResourceNotFoundError("Section", section_id)
        return section

    def _resolve_actor(self, user: User, section: Section) -> Actor:
        return Actor(
            id=user.id,
            role=user.role,
            is_active=user.is_active,
            teaches_section=self._schedules.teaches_section(user.id, section.id),
            advises_section=section.adviser_id is not None and section.adviser_id == user.id,
        )
