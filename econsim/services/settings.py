"""Tenant-wide classroom settings."""

import logging
from typing import Any, Callable

from econsim.models import Principal, Role, Settings
from econsim.serialization import to_dict
from econsim.services.base import BaseService, require_role
from econsim.validation import (
    parse_balance,
    reject_unknown_fields,
    validate_class_name,
    validate_currency_name,
    validate_currency_symbol,
    validate_flag,
)

logger = logging.getLogger(__name__)

_VALIDATORS: dict[str, Callable[[Any], Any]] = {
    "class_name": validate_class_name,
    "currency_name": validate_currency_name,
    "currency_symbol": validate_currency_symbol,
    "enable_businesses": lambda value: validate_flag(value, "enable_businesses"),
}


class SettingsRegistry(BaseService):
    """Read and update the classroom settings record.

    Changing ``starting_balance`` only affects accounts created afterwards.
    """

    source = "settings"

    def get(self) -> Settings:
        with self._snapshot() as view:
            return view.settings

    def persist_defaults(self) -> Settings:
        """Store the default settings record unless one already exists."""
        with self._transaction() as uow:
            settings = uow.settings
            if not uow.is_stored("settings"):
                uow.set_settings(settings)
        return settings

    def update(self, principal: Principal, fields: dict[str, Any]) -> Settings:
        require_role(principal, Role.TEACHER, "change settings")
        reject_unknown_fields(fields, set(_VALIDATORS) | {"starting_balance"}, "the settings")
        changes = {name: self._validate(name, value) for name, value in fields.items()}

        with self._transaction() as uow:
            settings = uow.settings
            for name, value in changes.items():
                setattr(settings, name, value)
            settings.updated_at = self.now()
            uow.set_settings(settings)
            self._emit(uow, "settings.updated", "settings", to_dict(settings))

        logger.info("Updated settings: %s", ", ".join(sorted(changes)) or "nothing")
        return settings

    def _validate(self, name: str, value: Any) -> Any:
        if name == "starting_balance":
            return parse_balance(value, "Starting balance", self.config.ledger.max_balance)
        return _VALIDATORS[name](value)
