"""Quarter package state machine.

The permission table maps ``(current status, action)`` to the target status,
the actor relationship the edge requires, and the ledger entry it writes.
Nothing here touches the database; the service layer resolves who the actor
is relative to the section and applies the returned rule.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from registrar.core.exceptions import InvalidTransitionError, UnauthorizedTransitionError
from registrar.models.quarter_package import PackageStatus
from registrar.models.record_approval import ApprovalAction
from registrar.models.user import UserRole


class PackageAction(str, Enum):
    submit = "submit"
    approve = "approve"
    return_ = "return"
    forward = "forward"


class ActorRelation(str, Enum):
    owning_teacher = "owning teacher"
    section_adviser = "section adviser"
    admin = "admin"


@dataclass(frozen=True)
class TransitionRule:
    target: PackageStatus
    required: ActorRelation
    ledger_action: ApprovalAction | None = None
    requires_remarks: bool = False
    stamps_submission: bool = False


TRANSITIONS: dict[tuple[PackageStatus, PackageAction], TransitionRule] = {
    (PackageStatus.PENDING, PackageAction.submit): TransitionRule(
        target=PackageStatus.SUBMITTED,
        required=ActorRelation.owning_teacher,
        stamps_submission=True,
    ),
    # A returned package is back with the teacher and is resubmitted like a pending one.
    (PackageStatus.RETURNED, PackageAction.submit): TransitionRule(
        target=PackageStatus.SUBMITTED,
        required=ActorRelation.owning_teacher,
        stamps_submission=True,
    ),
    (PackageStatus.SUBMITTED, PackageAction.approve): TransitionRule(
        target=PackageStatus.APPROVED,
        required=ActorRelation.section_adviser,
        ledger_action=ApprovalAction.APPROVE,
    ),
    (PackageStatus.SUBMITTED, PackageAction.return_): TransitionRule(
        target=PackageStatus.RETURNED,
        required=ActorRelation.section_adviser,
        ledger_action=ApprovalAction.RETURN,
        requires_remarks=True,
    ),
    (PackageStatus.APPROVED, PackageAction.forward): TransitionRule(
        target=PackageStatus.FORWARDED_TO_ADMIN,
        required=ActorRelation.section_adviser,
    ),
    (PackageStatus.FORWARDED_TO_ADMIN, PackageAction.approve): TransitionRule(
        target=PackageStatus.PUBLISHED,
        required=ActorRelation.admin,
        ledger_action=ApprovalAction.APPROVE,
    ),
    (PackageStatus.FORWARDED_TO_ADMIN, PackageAction.return_): TransitionRule(
        target=PackageStatus.RETURNED,
        required=ActorRelation.admin,
        ledger_action=ApprovalAction.RETURN,
        requires_remarks=True,
    ),
}


@dataclass(frozen=True)
class Actor:
    """Who is acting, already resolved against the package's section."""

    id: str
    role: UserRole
    is_active: bool = True
    teaches_section: bool = False
    advises_section: bool = False

    def satisfies(self, relation: ActorRelation) -> bool:
        if not self.is_active:
            return False
        if relation == ActorRelation.admin:
            return self.role == UserRole.admin
        if relation == ActorRelation.section_adviser:
            return self.advises_section
        if relation == ActorRelation.owning_teacher:
            return self.role in (UserRole.teacher, UserRole.adviser) and (
                self.teaches_section or self.advises_section
            )
        return False


def resolve_transition(
    current: PackageStatus,
    action: PackageAction,
    actor: Actor,
    *,
    package_id: str | None = None,
) -> TransitionRule:
    """Return the rule for ``action`` from ``current`` or raise.

    Edge existence is checked before the actor, so a package's state machine
    answers the same way for everyone when the edge does not exist.
    """
    rule = TRANSITIONS.get((current, action))
    if rule is None:
        raise InvalidTransitionError(current.value, action.value, package_id=package_id)
    if not actor.satisfies(rule.required):
        raise UnauthorizedTransitionError(actor.id, action.value, rule.required.value, current.value)
    return rule


def available_actions(current: PackageStatus, actor: Actor) -> list[PackageAction]:
    return [
        action
        for (state, action), rule in TRANSITIONS.items()
        if state == current and actor.satisfies(rule.required)
    ]


def is_terminal(status: PackageStatus) -> bool:
    return not any(state == status for state, _ in TRANSITIONS)
