from __future__ import annotations

from typing import Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from registrar.models.academic_period import Quarter
from registrar.models.quarter_package import PackageStatus, QuarterPackage
from registrar.models.record_approval import RecordApproval
from registrar.repositories.base import PackageRepository


class SqlAlchemyPackageRepository(PackageRepository):
    def __init__(self, db: Session):
        self._db = db

    def find_package(self, section_id: str, quarter: Quarter) -> QuarterPackage | None:
        statement = select(QuarterPackage).where(
            QuarterPackage.section_id == section_id,
            QuarterPackage.quarter == quarter,
        )
        return self._db.execute(statement).scalar_one_or_none()

    def get_package(self, package_id: str) -> QuarterPackage | None:
        return self._db.get(QuarterPackage, package_id)

    def list_packages(
        self,
        *,
        section_id: str | None = None,
        quarter: Quarter | None = None,
        status: PackageStatus | None = None,
        adviser_id: str | None = None,
    ) -> Sequence[QuarterPackage]:
        statement = select(QuarterPackage)
        if section_id is not None:
            statement = statement.where(QuarterPackage.section_id == section_id)
        if quarter is not None:
            statement = statement.where(QuarterPackage.quarter == quarter)
        if status is not None:
            statement = statement.where(QuarterPackage.status == status)
        if adviser_id is not None:
            statement = statement.where(QuarterPackage.adviser_id == adviser_id)
        statement = statement.order_by(QuarterPackage.section_id, QuarterPackage.quarter)
        return list(self._db.execute(statement).scalars())

    def save_package(self, package: QuarterPackage) -> QuarterPackage:
        self._db.add(package)
        self._db.flush()
        return package

    def delete_package(self, package: QuarterPackage) -> None:
        self._db.delete(package)
        self._db.flush()

    def append_approval(self, approval: RecordApproval) -> RecordApproval:
        self._db.add(approval)
        self._db.flush()
        return approval

    def list_approvals(self, package_id: str) -> Sequence[RecordApproval]:
        statement = (
            select(RecordApproval)
            .where(RecordApproval.package_id == package_id)
            .order_by(RecordApproval.created_at, RecordApproval.id)
        )
        return list(self._db.execute(statement).scalars())

    def count_approvals(self, package_id: str) -> int:
        statement = select(func.count()).select_from(RecordApproval).where(RecordApproval.package_id == package_id)
        return int(self._db.execute(statement).scalar_one())
