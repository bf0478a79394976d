"""Saved default prescription."""

import logging
from dataclasses import dataclass

from pydantic import ValidationError

from neonest.domain.tpn import TPNInputs
from neonest.services.storage import KeyValueStore

TPN_DEFAULTS_KEY = "tpn_defaults"

FACTORY_DEFAULTS = TPNInputs()

_logger = logging.getLogger(__name__)


@dataclass
class DefaultsService:
    """Loads and saves the unit's default TPN prescription."""

    store: KeyValueStore
    factory: TPNInputs = FACTORY_DEFAULTS

    def load(self) -> TPNInputs:
        """Return stored defaults layered over the factory values."""
        raw = self.store.get(TPN_DEFAULTS_KEY)
        if not raw:
            return self.factory
        try:
            stored = TPNInputs.model_validate_json(raw)
        except ValidationError:
            _logger.warning("Ignoring unreadable TPN defaults")
            return self.factory
        return self.factory.model_copy(update=stored.model_dump(exclude_unset=True))

    def save(self, inputs: TPNInputs) -> None:
        """Persist new defaults."""
        self.store.set(TPN_DEFAULTS_KEY, inputs.model_dump_json(by_alias=True))

    def reset(self) -> TPNInputs:
        """Restore and persist the factory defaults."""
        self.save(self.factory)
        return self.factory
