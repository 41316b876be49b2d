"""Configuration schema for scenery using Pydantic."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field


LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class ReportConfig(BaseModel):
    """Textual report layout."""

    separator_char: str = "*"
    separator_width: int = Field(default=47, ge=1)
    indent: str = "...."
    null_placeholder: str = "<none>"
    stream: Literal["stdout", "stderr"] = "stdout"
    enabled: bool = True  # Emit the report after each run


class TraceConfig(BaseModel):
    """In-memory log capture while a scenario runs."""

    enabled: bool = True
    logger: str = ""  # Empty string attaches to the root logger
    level: LogLevel = "DEBUG"
    strip_executable_prefix: bool = True


class TransportConfig(BaseModel):
    """In-process test server settings."""

    host: str = "127.0.0.1"
    unsafe_cookies: bool = True  # Keep cookies set for IP hosts
    concurrent_user_setup: bool = True


class SceneryConfig(BaseModel):
    """Root configuration model for scenery."""

    version: int = 1
    report: ReportConfig = Field(default_factory=ReportConfig)
    trace: TraceConfig = Field(default_factory=TraceConfig)
    transport: TransportConfig = Field(default_factory=TransportConfig)
    default_target: Optional[str] = None  # module:attribute used by `scenery run`

    @classmethod
    def get_default(cls) -> "SceneryConfig":
        """Return default configuration."""
        return cls()
