"""Site configuration: a JSON file plus the OPENAI_API_KEY environment variable."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config.json")
API_KEY_ENV = "OPENAI_API_KEY"


class ConfigError(Exception):
    """Raised when the configuration file exists but cannot be used."""


class Theme(BaseModel):
    primary_color: str = "#f5f5f5"
    background_color: str = "#0a0a0a"
    text_color: str = "#f5f5f5"
    accent_color: str = "#8b8b8b"


class SiteConfig(BaseModel):
    title: str = "Scribe"
    description: Optional[str] = "A minimal static site generator • ink • eternal"
    author: str = "Author"
    url: Optional[str] = None
    posts_dir: str = "posts"
    output_dir: str = "dist"
    openai_api_key: Optional[str] = Field(default=None, exclude=True)
    workers: int = Field(default=8, ge=1)
    theme: Theme = Field(default_factory=Theme)

    @property
    def posts_path(self) -> Path:
        return Path(self.posts_dir)

    @property
    def output_path(self) -> Path:
        return Path(self.output_dir)

    @property
    def initials_path(self) -> Path:
        return self.output_path / "initials"


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> SiteConfig:
    """Read config from path, writing the defaults there first if it is missing.

    The API key is never written to disk; OPENAI_API_KEY in the environment
    wins over anything in the file.
    """
    if path.exists():
        try:
            config = SiteConfig.model_validate_json(path.read_text(encoding="utf-8"))
        except ValidationError as exc:
            raise ConfigError(f"Invalid configuration in {path}: {exc}") from exc
        except OSError as exc:
            raise ConfigError(f"Failed to read {path}: {exc}") from exc
    else:
        config = SiteConfig()
        try:
            path.write_text(
                json.dumps(config.model_dump(mode="json"), indent=2, ensure_ascii=False),
                encoding="utf-8",
            )
        except OSError as exc:
            raise ConfigError(f"Failed to write default config to {path}: {exc}") from exc
        logger.info("Wrote default configuration to %s", path)

    api_key = os.environ.get(API_KEY_ENV)
    if api_key:
        config = config.model_copy(update={"openai_api_key": api_key})
    return config
