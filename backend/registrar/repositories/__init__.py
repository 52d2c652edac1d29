from registrar.repositories.base import (  # noqa: F401
    ConflictDimension,
    PackageRepository,
    ScheduleRepository,
    SectionRepository,
)
from registrar.repositories.packages import SqlAlchemyPackageRepository  # noqa: F401
from registrar.repositories.schedules import SqlAlchemyScheduleRepository  # noqa: F401
from registrar.repositories.sections import SqlAlchemySectionRepository  # noqa: F401
