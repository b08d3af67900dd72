"""pulse-markup configuration management."""

import logging
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings

logger = logging.getLogger("pulse_markup.config")


class MarkupSettings(BaseSettings):
    """Settings loaded from environment variables or .env file."""

    # Renderer
    image_extensions: tuple[str, ...] = Field(
        default=(".png", ".jpg", ".jpeg", ".gif", ".webp", ".bmp", ".svg", ".avif"),
        description="URL suffixes extracted to the media sink instead of rendered inline",
    )

    # Emoji-only classification
    emoji_only_max: int = Field(default=6, ge=1, description="Largest emoji count still shown enlarged")

    # Decompiler / display fallbacks
    unknown_label: str = Field(default="Unknown", description="Name used for ids missing from the directory")

    # Plain-text previews (notifications, reply previews)
    plain_user_label: str = Field(default="@user")
    plain_role_label: str = Field(default="@role")
    plain_channel_label: str = Field(default="#channel")

    model_config = {"env_prefix": "PULSE_MARKUP_", "env_file": ".env", "extra": "ignore"}


@lru_cache(maxsize=1)
def load_settings() -> MarkupSettings:
    """Load settings from environment (cached for the process)."""
    settings = MarkupSettings()

    bad = [ext for ext in settings.image_extensions if not ext.startswith(".")]
    if bad:
        logger.warning(
            f"Image extensions without a leading dot will match any URL ending in them: {', '.join(bad)}"
        )

    return settings


def resolve_settings(settings: Optional[MarkupSettings] = None) -> MarkupSettings:
    """Return the given settings, or the process-wide defaults."""
    return settings if settings is not None else load_settings()
