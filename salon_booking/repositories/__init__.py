from .booking_repository import BookingRepository
from .service_repository import ServiceRepository
from .shift_repository import ShiftRepository
from .user_repository import UserRepository

__all__ = ["BookingRepository", "ServiceRepository", "ShiftRepository", "UserRepository"]
