"""Pydantic models describing emlparse configuration documents."""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ParserConfig(BaseModel):
    """Tunables for the message parser.

    The defaults reproduce the behaviour expected by viewers consuming the
    parsed record, so an absent configuration file is always valid.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    version: int = 1
    max_depth: int = Field(default=8, ge=1, le=64)
    placeholder_name: str = "attachment"
    min_attachment_size: int = Field(default=500, ge=0)
    default_from: str = "Unknown"
    default_subject: str = "No Subject"
    default_content_type: str = "application/octet-stream"
    log_level: Literal["DEBUG", "INFO", "WARN", "ERROR"] = "WARN"

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: object) -> object:
        if isinstance(value, str):
            value = value.upper()
            if value == "WARNING":
                return "WARN"
        return value

    @field_validator("placeholder_name")
    @classmethod
    def _placeholder_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("placeholder_name must not be blank")
        return value
