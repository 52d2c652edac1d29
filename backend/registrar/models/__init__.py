from registrar.models.academic_period import AcademicPeriod, Quarter  # noqa: F401
from registrar.models.activity_log import ActivityLog  # noqa: F401
from registrar.models.quarter_package import PackageStatus, QuarterPackage  # noqa: F401
from registrar.models.record_approval import ApprovalAction, RecordApproval  # noqa: F401
from registrar.models.room import Room  # noqa: F401
from registrar.models.schedule import Schedule  # noqa: F401
from registrar.models.section import Section  # noqa: F401
from registrar.models.subject import Subject  # noqa: F401
from registrar.models.user import TEACHING_ROLES, User, UserRole  # noqa: F401
