from scheduling.models.course import Course  # noqa: F401
from scheduling.models.offering import SubjectOffering  # noqa: F401
from scheduling.models.room import Room, RoomType  # noqa: F401
from scheduling.models.schedule import Schedule, SessionType  # noqa: F401
from scheduling.models.subject import Subject  # noqa: F401
