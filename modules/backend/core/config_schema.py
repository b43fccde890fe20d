"""
Configuration Schemas.

Pydantic models defining the expected structure of each YAML config file.
Used by AppConfig to validate configuration at load time. If a YAML file
has missing keys, wrong types, or unknown fields, a clear ValidationError
is raised at startup instead of a cryptic KeyError deep in application code.

Each top-level class corresponds to one file in config/settings/:
    ApplicationSchema  → application.yaml
    LangflowSchema     → langflow.yaml
    ConcurrencySchema  → concurrency.yaml
    LoggingSchema      → logging.yaml
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _StrictBase(BaseModel):
    """Base with extra='forbid' so unknown YAML keys are caught immediately."""

    model_config = ConfigDict(extra="forbid")


# =============================================================================
# application.yaml
# =============================================================================


class ServerSchema(_StrictBase):
    host: str
    port: int


class TelegramAppSchema(_StrictBase):
    webhook_path: str
    trigger_words: list[str] = Field(min_length=1)
    allowed_chats: list[str] = []
    allowed_users: list[str] = []
    answer_parse_mode: Literal["HTML", "Markdown", "MarkdownV2"] | None = None

    @field_validator("allowed_chats", "allowed_users", mode="before")
    @classmethod
    def _ids_as_strings(cls, value: list) -> list:
        # Telegram ids are often written as bare integers in YAML
        return [str(item) for item in value or []]


class ApplicationSchema(_StrictBase):
    name: str
    version: str
    description: str
    environment: str
    debug: bool
    public_url: str = ""
    server: ServerSchema
    telegram: TelegramAppSchema


# =============================================================================
# langflow.yaml
# =============================================================================


class LangflowSchema(_StrictBase):
    base_url: str
    flow_id: str
    output_component: str | None = None
    include_sender: bool = False
    stream_param: bool = True
    timeout_seconds: float = 30
    max_response_bytes: int = 2_000_000


# =============================================================================
# concurrency.yaml
# =============================================================================


class ConversationGateSchema(_StrictBase):
    lease_seconds: float | None = None


class ConcurrencySchema(_StrictBase):
    conversation_gate: ConversationGateSchema


# =============================================================================
# logging.yaml
# =============================================================================


class ConsoleHandlerSchema(_StrictBase):
    enabled: bool


class FileHandlerSchema(_StrictBase):
    enabled: bool
    path: str
    max_bytes: int
    backup_count: int


class HandlersSchema(_StrictBase):
    console: ConsoleHandlerSchema
    file: FileHandlerSchema


class LoggingSchema(_StrictBase):
    level: str
    format: str
    handlers: HandlersSchema
