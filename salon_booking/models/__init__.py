from .user import User, UserRole, master_services_association
from .service import Category, Service
from .shift import Shift
from .booking import ACTIVE_STATUSES, Booking, BookingStatus

__all__ = [
    "User",
    "UserRole",
    "master_services_association",
    "Category",
    "Service",
    "Shift",
    "Booking",
    "BookingStatus",
    "ACTIVE_STATUSES",
]
