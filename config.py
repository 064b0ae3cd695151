"""
Runtime settings for the storefront chatbot.
Values come from the environment (optionally a .env file) with sensible defaults.
"""

import logging
import os
from dataclasses import dataclass

from dotenv import find_dotenv, load_dotenv


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class Settings:
    store_name: str = "TrendyCart"
    bot_name: str = "TrendyBot"
    typing_delay_min: float = 0.8
    typing_delay_max: float = 1.6
    log_level: str = "INFO"


def _read_delay(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number of seconds, got {raw!r}")
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {value}")
    return value


def load_settings() -> Settings:
    """Load settings from the environment and .env"""
    load_dotenv(find_dotenv(usecwd=True))

    delay_min = _read_delay("TYPING_DELAY_MIN", Settings.typing_delay_min)
    delay_max = _read_delay("TYPING_DELAY_MAX", Settings.typing_delay_max)
    if delay_min > delay_max:
        raise ValueError(
            f"TYPING_DELAY_MIN ({delay_min}) must not exceed TYPING_DELAY_MAX ({delay_max})"
        )

    return Settings(
        store_name=os.environ.get("STORE_NAME", Settings.store_name),
        bot_name=os.environ.get("BOT_NAME", Settings.bot_name),
        typing_delay_min=delay_min,
        typing_delay_max=delay_max,
        log_level=os.environ.get("LOG_LEVEL", Settings.log_level).upper(),
    )


def configure_logging(settings: Settings) -> None:
    """Configure root logging once for the host process"""
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)
