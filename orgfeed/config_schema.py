"""
Configuration Schema

This module defines the Pydantic schema for the orgfeed configuration file.

Example config.yaml:

    outline:
      files:
        - ~/org/feeds.org
      tree_id: elfeed
      ignore_tag: ignore
    logging:
      level: INFO
      format: plain
"""
from typing import Literal, Optional
from pydantic import BaseModel, Field, field_validator, ConfigDict


def _validate_tag_name(v: str) -> str:
    if not v or not v.strip():
        raise ValueError("Tag name cannot be empty")
    if any(ch.isspace() for ch in v) or ':' in v:
        raise ValueError(f"Tag name cannot contain whitespace or ':': {v!r}")
    return v


class OutlineConfig(BaseModel):
    """Outline documents and the tags that drive rule extraction."""
    files: list[str] = Field(default_factory=list, description="Outline documents to compile, in order")
    tree_id: str = Field(default="elfeed", description="Marker tag (or legacy :ID: value) selecting the feed subtrees")
    ignore_tag: str = Field(default="ignore", description="Headings carrying this tag (directly or inherited) are skipped")

    @field_validator('files')
    @classmethod
    def validate_files(cls, v: list[str]) -> list[str]:
        """Validate file paths are non-empty; existence is checked at compile time."""
        for path in v:
            if not path or not path.strip():
                raise ValueError(f"Outline file path cannot be empty: {v}")
        return v

    @field_validator('tree_id', 'ignore_tag')
    @classmethod
    def validate_tags(cls, v: str) -> str:
        """Validate marker and ignore tags are usable as outline tags."""
        return _validate_tag_name(v)


class LoggingConfig(BaseModel):
    """Logging configuration section."""
    level: str = Field(default="INFO", description="Log level for the orgfeed logger")
    format: Literal["plain", "json"] = Field(default="plain", description="Console/file log format")
    file: Optional[str] = Field(default=None, description="Optional rotating log file")

    @field_validator('level')
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate the log level name."""
        level = v.upper().strip()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log level: {v}")
        return level


class OrgFeedConfigSchema(BaseModel):
    """Root configuration schema."""
    outline: OutlineConfig = Field(default_factory=OutlineConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = ConfigDict(
        extra="forbid",  # Reject any extra fields not in schema
        validate_assignment=True
    )
