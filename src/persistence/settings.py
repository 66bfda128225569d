from __future__ import annotations

import logging
from typing import Any, Mapping

from pydantic import BaseModel, ValidationError

from storage.kv_store import KeyValueStore

from .models import DEFAULT_SETTINGS, Settings
from .namespace import STORAGE_KEYS, Partition, to_plain


logger = logging.getLogger(__name__)


class SettingsManager:
    def __init__(self, store: KeyValueStore, *, key: str = STORAGE_KEYS.settings) -> None:
        self.partition = Partition(store, key)

    def save_settings(self, settings: BaseModel | Mapping[str, Any]) -> None:
        """Write the record as given; best-effort, failures are only logged."""
        result = self.partition.write(to_plain(settings))
        if not result:
            logger.error("Error saving settings: %s", result.error or result.reason)

    def load_settings(self) -> Settings:
        """Defaults, overridden and extended by whatever was stored."""
        result = self.partition.read()
        if not result.ok:
            return Settings.defaults()
        if not isinstance(result.value, dict):
            logger.error("Error loading settings: stored value is not an object")
            return Settings.defaults()
        merged = {**DEFAULT_SETTINGS, **result.value}
        try:
            return Settings.model_validate(merged)
        except ValidationError as ex:
            logger.error("Error loading settings: %s", ex)
            bad = {err["loc"][0] for err in ex.errors() if err["loc"]}

        # Invalid fields fall back to their default; everything else stored is kept
        repaired = {k: v for k, v in merged.items() if k not in bad}
        for name in bad:
            if name in DEFAULT_SETTINGS:
                repaired[name] = DEFAULT_SETTINGS[name]
        try:
            return Settings.model_validate(repaired)
        except ValidationError as ex:
            logger.error("Error loading settings after dropping %s: %s", sorted(bad), ex)
            return Settings.defaults()
