"""Dependency injection singletons for MER automation."""

from mer_automation.activity.logsource import FolderLogSource, LogSource
from mer_automation.activity.service import ActiveUserService
from mer_automation.baskets.service import BasketService
from mer_automation.common.config import get_settings
from mer_automation.common.database import DatabaseManager
from mer_automation.exemptions.registry import ExemptionRegistry
from mer_automation.notifications.email_delivery import EmailSender
from mer_automation.registration.service import RegistrationService
from mer_automation.sheets.store import TableStore
from mer_automation.training.calendar import CalendarClient
from mer_automation.training.service import TrainingService

_db: DatabaseManager | None = None
_store: TableStore | None = None
_email_sender: EmailSender | None = None
_log_source: LogSource | None = None
_exemptions: ExemptionRegistry | None = None
_calendar: CalendarClient | None = None
_active_users: ActiveUserService | None = None
_baskets: BasketService | None = None
_training: TrainingService | None = None
_registration: RegistrationService | None = None


def get_db() -> DatabaseManager:
    global _db
    if _db is None:
        _db = DatabaseManager(get_settings())
    return _db


def get_store() -> TableStore:
    global _store
    if _store is None:
        _store = TableStore()
    return _store


def get_email_sender() -> EmailSender:
    global _email_sender
    if _email_sender is None:
        settings = get_settings()
        _email_sender = EmailSender(
            provider=settings.email_provider,
            api_key=settings.email_api_key,
            from_email=settings.email_from,
            from_name=settings.email_from_name,
        )
    return _email_sender


def get_log_source() -> LogSource:
    global _log_source
    if _log_source is None:
        _log_source = FolderLogSource(get_settings().log_root)
    return _log_source


def get_exemption_registry() -> ExemptionRegistry:
    global _exemptions
    if _exemptions is None:
        _exemptions = ExemptionRegistry(get_settings().exemptions_path)
    return _exemptions


def set_calendar(calendar: CalendarClient | None) -> None:
    """Install the calendar used by the training service."""
    global _calendar, _training
    _calendar = calendar
    _training = None


def get_active_user_service() -> ActiveUserService:
    global _active_users
    if _active_users is None:
        _active_users = ActiveUserService(get_settings(), get_store(), get_log_source())
    return _active_users


def get_basket_service() -> BasketService:
    global _baskets
    if _baskets is None:
        _baskets = BasketService(get_settings(), get_store(), email_sender=get_email_sender())
    return _baskets


def get_training_service() -> TrainingService:
    global _training
    if _training is None:
        _training = TrainingService(
            get_settings(), get_store(),
            email_sender=get_email_sender(),
            calendar=_calendar,
        )
    return _training


def get_registration_service() -> RegistrationService:
    global _registration
    if _registration is None:
        _registration = RegistrationService(
            get_settings(), get_store(), email_sender=get_email_sender(),
        )
    return _registration


def reset_singletons() -> None:
    """Reset all singletons (for testing)."""
    global _db, _store, _email_sender, _log_source, _exemptions, _calendar
    global _active_users, _baskets, _training, _registration
    _db = None
    _store = None
    _email_sender = None
    _log_source = None
    _exemptions = None
    _calendar = None
    _active_users = None
    _baskets = None
    _training = None
    _registration = None
