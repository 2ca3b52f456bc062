"""
Test suite for RuntimeSettingsStore.

System role: Verification of persisted, snapshot-based runtime settings
"""

import json
from pathlib import Path

import pytest

from askrag.boundary.settings_store import RuntimeSettingsStore
from askrag.core.exceptions import ValidationError
from askrag.models.runtime_settings import DEFAULT_PERSONA_ID, RuntimeSettings


@pytest.fixture
def defaults() -> RuntimeSettings:
    """Provide default runtime settings."""
    return RuntimeSettings(base_url="http://localhost:1234/v1/", chat_model="chat", embed_model="embed")


@pytest.fixture
def settings_path(tmp_path: Path) -> Path:
    """Provide path for the settings file."""
    return tmp_path / "settings.json"


class TestLoad:
    """Test suite for RuntimeSettingsStore.load."""

    def test_missing_file_should_be_created_from_defaults(self, defaults, settings_path: Path) -> None:
        # Act
        store = RuntimeSettingsStore.load(settings_path, defaults)

        # Assert
        assert settings_path.exists()
        assert store.get().base_url == "http://localhost:1234"
        assert store.get().default_persona().id == DEFAULT_PERSONA_ID

    def test_existing_file_should_override_defaults(self, defaults, settings_path: Path) -> None:
        # Arrange
        settings_path.write_text(json.dumps({"k": 9, "chat_model": "other"}), encoding="utf-8")

        # Act
        store = RuntimeSettingsStore.load(settings_path, defaults)

        # Assert
        assert store.get().k == 9
        assert store.get().chat_model == "other"
        assert store.get().embed_model == "embed"

    def test_corrupt_file_should_fall_back_to_defaults(self, defaults, settings_path: Path) -> None:
        # Arrange
        settings_path.write_text("{broken", encoding="utf-8")

        # Act
        store = RuntimeSettingsStore.load(settings_path, defaults)

        # Assert
        assert store.get() == defaults
        assert settings_path.read_text(encoding="utf-8") == "{broken"


class TestUpdate:
    """Test suite for RuntimeSettingsStore.update."""

    def test_update_should_persist_and_bump_version(self, defaults, settings_path: Path) -> None:
        # Arrange
        store = RuntimeSettingsStore.load(settings_path, defaults)
        before = store.get()

        # Act
        after = store.update(k=7, chat_model=None, allow_sandbox=True)

        # Assert
        assert after.version == before.version + 1
        assert after.k == 7
        assert after.chat_model == "chat"
        assert before.k != 7
        assert json.loads(settings_path.read_text(encoding="utf-8"))["allow_sandbox"] is True

    def test_invalid_update_should_keep_snapshot(self, defaults, settings_path: Path) -> None:
        # Arrange
        store = RuntimeSettingsStore.load(settings_path, defaults)

        # Act & Assert
        with pytest.raises(ValidationError):
            store.update(k="many")
        assert store.get().version == defaults.version


class TestPersonasAndApis:
    """Test suite for persona and template API management."""

    def test_add_and_remove_persona(self, defaults) -> None:
        # Arrange
        store = RuntimeSettingsStore(defaults)

        # Act
        persona = store.add_persona("Pirate", "Talk like a pirate.")

        # Assert
        assert store.get().persona(persona.id).prompt == "Talk like a pirate."
        assert store.remove_persona(persona.id)
        assert not store.remove_persona(persona.id)

    def test_default_persona_cannot_be_removed(self, defaults) -> None:
        store = RuntimeSettingsStore(defaults)
        with pytest.raises(ValidationError):
            store.remove_persona(DEFAULT_PERSONA_ID)

    def test_add_and_remove_custom_api(self, defaults) -> None:
        # Arrange
        store = RuntimeSettingsStore(defaults)

        # Act
        api = store.add_custom_api("books", "https://books.test/?q=$q", "Book search")

        # Assert
        assert store.get().custom_api(api.id).name == "books"
        assert store.remove_custom_api(api.id)
        assert store.get().custom_apis == ()
