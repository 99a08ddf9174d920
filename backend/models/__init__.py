from models.base import Base
from models.group import Group
from models.group_schedule_assignment import GroupScheduleAssignment
from models.schedule_cell import ScheduleCell
from models.schedule_table import ScheduleTable
from models.user import User

__all__ = [
	"Base",
	"Group",
	"GroupScheduleAssignment",
	"ScheduleCell",
	"ScheduleTable",
	"User",
]
