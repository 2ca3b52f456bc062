"""
Runtime settings schemas.

Runtime settings are editable through the API and persisted to disk.
Snapshots are frozen so a reader never sees a half-applied update.

Dependencies: pydantic
System role: Runtime configuration, personas and template API contracts
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_PERSONA_ID = "persona-default"
QUERY_PLACEHOLDER = "$q"


def normalize_base_url(url: str) -> str:
    """Strip trailing slashes and a trailing /v1 from a backend URL."""
    url = url.strip().rstrip("/")
    if url.endswith("/v1"):
        url = url[: -len("/v1")]
    return url.rstrip("/")


class Persona(BaseModel):
    """Named system-prompt preamble."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    prompt: str = ""


class CustomAPI(BaseModel):
    """Caller-registered template API."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    template: str = Field(description="URL containing the $q placeholder")
    desc: str = ""


def default_persona() -> Persona:
    return Persona(id=DEFAULT_PERSONA_ID, name="Standard", prompt="")


class RuntimeSettings(BaseModel):
    """Immutable snapshot of runtime settings."""

    model_config = ConfigDict(frozen=True)

    version: int = 1
    base_url: str
    chat_model: str
    embed_model: str
    lang: str = "de"
    chunk_size: int = 800
    k: int = 5
    custom_apis: tuple[CustomAPI, ...] = ()
    personas: tuple[Persona, ...] = Field(default_factory=lambda: (default_persona(),))
    allow_code_exec: bool = False
    allow_sandbox: bool = False

    @field_validator("base_url")
    @classmethod
    def _normalize_url(cls, value: str) -> str:
        return normalize_base_url(value)

    def persona(self, persona_id: str | None) -> Persona | None:
        for persona in self.personas:
            if persona.id == persona_id:
                return persona
        return None

    def default_persona(self) -> Persona:
        return self.persona(DEFAULT_PERSONA_ID) or (
            self.personas[0] if self.personas else default_persona()
        )

    def custom_api(self, api_id: str) -> CustomAPI | None:
        for api in self.custom_apis:
            if api.id == api_id:
                return api
        return None


class RuntimeSettingsUpdate(BaseModel):
    """Partial update for runtime settings."""

    base_url: str | None = None
    chat_model: str | None = None
    embed_model: str | None = None
    lang: str | None = Field(default=None, min_length=2, max_length=10)
    chunk_size: int | None = Field(default=None, ge=50, le=20000)
    k: int | None = Field(default=None, ge=1, le=100)
    allow_code_exec: bool | None = None
    allow_sandbox: bool | None = None


class CustomAPICreate(BaseModel):
    """Request schema for registering a template API."""

    name: str = Field(min_length=1)
    template: str = Field(min_length=1)
    desc: str = ""

    @field_validator("template")
    @classmethod
    def _has_placeholder(cls, value: str) -> str:
        if QUERY_PLACEHOLDER not in value:
            raise ValueError("template must contain the $q placeholder")
        if not value.startswith(("http://", "https://")):
            raise ValueError("template must be an http(s) URL")
        return value


class PersonaCreate(BaseModel):
    """Request schema for adding a persona."""

    name: str = Field(min_length=1)
    prompt: str = ""
