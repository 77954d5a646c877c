"""
igotifier Configuration Module.

Runtime configuration models built from command-line flags.
Requires Python 3.11+.
"""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

APP_NAME = "igotifier"
APP_VERSION = "0.1.0"
LOG_LEVEL = "INFO"


class DispatchConfig(BaseModel):
    """
    Immutable watch configuration, set once at startup.

    Shared read-only by the registrar, the debouncer and the dispatcher.
    """

    model_config = ConfigDict(frozen=True)

    path: Path = Field(description="File or directory to watch")
    command: str = Field(min_length=1, description="Shell command run on change")
    verbose: bool = Field(default=False)

    @field_validator("path", mode="before")
    @classmethod
    def reject_empty_path(cls, v: str | Path) -> str | Path:
        """An empty string would silently mean the current directory."""
        if isinstance(v, str) and not v.strip():
            raise ValueError("path must not be empty")
        return v

    @field_validator("command")
    @classmethod
    def reject_blank_command(cls, v: str) -> str:
        """Reject commands made only of whitespace."""
        if not v.strip():
            raise ValueError("command must not be blank")
        return v
