from .notification_service import Notification, NotificationKind, Notifier, dispatch_notifications, get_notifier
from .schedule_service import ScheduleService
from .slot_service import SlotService
from .booking_service import BookingService
from .lifecycle_service import LifecycleService
from .booking_query_service import BookingQueryService
from .reminder_service import ReminderService
from .catalog_service import CatalogService
