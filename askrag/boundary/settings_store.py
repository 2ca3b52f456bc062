"""
Persisted runtime settings.

Holds the current RuntimeSettings snapshot and persists every change to a
JSON file (write to a temp file, then rename). Snapshots are frozen; an
update builds a new snapshot and swaps the reference under a lock.

Dependencies: pydantic, askrag.models.runtime_settings
System role: Runtime configuration, persona and template API store
"""

import json
import logging
import os
import tempfile
import threading
import time
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from askrag.configs.settings import Settings
from askrag.core.exceptions import ValidationError
from askrag.models.runtime_settings import (
    CustomAPI,
    DEFAULT_PERSONA_ID,
    Persona,
    RuntimeSettings,
    default_persona,
)

logger = logging.getLogger(__name__)


def seed_runtime_settings(settings: Settings) -> RuntimeSettings:
    """Initial snapshot derived from environment configuration."""
    return RuntimeSettings(
        base_url=settings.llm.base_url,
        chat_model=settings.llm.chat_model,
        embed_model=settings.llm.embed_model,
        chunk_size=settings.retrieval.chunk_size,
        k=settings.retrieval.k,
    )


class RuntimeSettingsStore:
    """
    File-backed store of runtime settings snapshots.

    Attributes:
        path: JSON file location (None keeps settings in memory only)
    """

    def __init__(self, initial: RuntimeSettings, path: str | Path | None = None) -> None:
        self.path = Path(path) if path else None
        self._lock = threading.Lock()
        self._current = initial

    @classmethod
    def load(cls, path: str | Path, defaults: RuntimeSettings) -> "RuntimeSettingsStore":
        """
        Load settings from disk, falling back to defaults for missing fields.

        A missing file is created from the defaults. An unreadable file is
        logged and replaced by defaults in memory only; it is not overwritten
        until the next update.
        """
        file_path = Path(path)
        if not file_path.exists():
            store = cls(defaults, file_path)
            store._persist(defaults)
            return store
        try:
            raw = json.loads(file_path.read_text(encoding="utf-8"))
            merged = {**defaults.model_dump(), **raw}
            snapshot = RuntimeSettings.model_validate(merged)
        except (OSError, ValueError, PydanticValidationError) as e:
            logger.error(f"{__name__}:load - Failed to read {file_path}: {e}; using defaults")
            snapshot = defaults
        if not snapshot.personas:
            snapshot = snapshot.model_copy(update={"personas": (default_persona(),)})
        return cls(snapshot, file_path)

    def get(self) -> RuntimeSettings:
        with self._lock:
            return self._current

    def update(self, **changes: Any) -> RuntimeSettings:
        """
        Apply changes atomically and persist them.

        Args:
            **changes: RuntimeSettings fields; None values are ignored

        Returns:
            The new snapshot

        Raises:
            ValidationError: If the resulting settings are invalid
        """
        changes = {key: value for key, value in changes.items() if value is not None}
        with self._lock:
            data = {**self._current.model_dump(), **changes}
            data["version"] = self._current.version + 1
            try:
                snapshot = RuntimeSettings.model_validate(data)
            except PydanticValidationError as e:
                raise ValidationError(f"invalid settings: {e}") from e
            self._persist(snapshot)
            self._current = snapshot
        logger.info(
            f"{__name__}:update - Runtime settings updated",
            extra={"fields": sorted(changes), "version": snapshot.version},
        )
        return snapshot

    def add_custom_api(self, name: str, template: str, desc: str = "") -> CustomAPI:
        api = CustomAPI(id=f"api-{time.time_ns()}", name=name, template=template, desc=desc)
        current = self.get()
        self.update(custom_apis=current.custom_apis + (api,))
        return api

    def remove_custom_api(self, api_id: str) -> bool:
        current = self.get()
        remaining = tuple(api for api in current.custom_apis if api.id != api_id)
        if len(remaining) == len(current.custom_apis):
            return False
        self.update(custom_apis=remaining)
        return True

    def add_persona(self, name: str, prompt: str) -> Persona:
        persona = Persona(id=f"persona-{time.time_ns()}", name=name, prompt=prompt)
        current = self.get()
        self.update(personas=current.personas + (persona,))
        return persona

    def remove_persona(self, persona_id: str) -> bool:
        if persona_id == DEFAULT_PERSONA_ID:
            raise ValidationError("the default persona cannot be deleted", field="persona_id")
        current = self.get()
        remaining = tuple(p for p in current.personas if p.id != persona_id)
        if len(remaining) == len(current.personas):
            return False
        self.update(personas=remaining)
        return True

    def _persist(self, snapshot: RuntimeSettings) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(snapshot.model_dump(mode="json"), indent=2, ensure_ascii=False)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".settings-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.replace(tmp_name, self.path)
        except OSError:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
