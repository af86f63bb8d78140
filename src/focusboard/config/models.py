"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, focusboard.toml only contains
overrides. A fresh board needs no config file at all. Each model is one
``[section]`` of the file and is composed into :class:`BoardSettings`.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class DatabaseConfig(BaseModel):
    """[database] section."""

    model_config = {"frozen": True}

    filename: str = Field(default="board.db", min_length=1)
    busy_timeout: float = Field(default=15.0, ge=0)


class BoardSection(BaseModel):
    """[board] section."""

    model_config = {"frozen": True}

    # Title given to the catch-all list of every new focus zone.
    catch_all_title: str = Field(default="Don't Forget", min_length=1)


class FeedConfig(BaseModel):
    """[feed] section: change-log polling for ``focusboard watch``."""

    model_config = {"frozen": True}

    poll_interval: float = Field(default=1.0, gt=0)
    batch_size: int = Field(default=200, ge=1)


class EventsConfig(BaseModel):
    """[events] section: plugin hook delivery."""

    model_config = {"frozen": True}

    max_retries: int = Field(default=3, ge=1)
    max_workers: int = Field(default=2, ge=1)
