import uuid
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import DateTime, Enum as SAEnum, String, Text, event
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from registrar.core.exceptions import ImmutableRecordError
from registrar.db.base import Base


class ApprovalAction(str, Enum):
    APPROVE = "APPROVE"
    RETURN = "RETURN"


class RecordApproval(Base):
    """Append-only ledger entry for an approve/return decision on a quarter package."""

    __tablename__ = "record_approvals"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    package_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    approver_id: Mapped[str] = mapped_column(String(36), nullable=False)
    action: Mapped[ApprovalAction] = mapped_column(SAEnum(ApprovalAction, name="approval_action"), nullable=False)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )


@event.listens_for(RecordApproval, "before_update")
def reject_approval_update(mapper, connection, target):
    raise ImmutableRecordError("RecordApproval", target.id, "updated")


@event.listens_for(RecordApproval, "before_delete")
def reject_approval_delete(mapper, connection, target):
    raise ImmutableRecordError("RecordApproval", target.id, "deleted")
