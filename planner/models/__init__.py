# Import models so that they register with Base.metadata
from planner.models.apartments import Apartment
from planner.models.events import Event, EventMember, EventStatus
from planner.models.guests import ArrivalMode, Guest, GuestType
from planner.models.profiles import Profile

__all__ = [
    "Apartment",
    "ArrivalMode",
    "Event",
    "EventMember",
    "EventStatus",
    "Guest",
    "GuestType",
    "Profile",
]
