"""Engine services operating on a shared classroom store."""

from econsim.services.applications import ApplicationDesk
from econsim.services.base import BaseService, Notifier, ServiceContext, utc_now
from econsim.services.jobs import JobMarket
from econsim.services.ledger import AccountLedger
from econsim.services.settings import SettingsRegistry

__all__ = [
    "AccountLedger",
    "ApplicationDesk",
    "BaseService",
    "JobMarket",
    "Notifier",
    "ServiceContext",
    "SettingsRegistry",
    "utc_now",
]
