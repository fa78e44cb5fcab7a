from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Dict, Optional

from dotenv import dotenv_values

from .errors import ConfigurationError
from .logging import get_logger
from .paths import find_upwards

LOG = get_logger("config")

DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
DEFAULT_OPENAI_TIMEOUT = 90
DEFAULT_MAX_TEXT_LENGTH = 18_000
DEFAULT_PARSE_RATE_LIMIT = 15
DEFAULT_SUGGEST_RATE_LIMIT = 30
DEFAULT_RATE_WINDOW_MS = 60_000
DEFAULT_TESSERACT_LANG = "deu+eng"
IMAGE_READERS = ("tesseract", "vision")


def _read_dotenv(dotenv_dir: Optional[str]) -> Dict[str, str]:
    """Return key/value pairs of the nearest .env (does not mutate os.environ)."""
    path = find_upwards(dotenv_dir, ".env")
    if not path:
        LOG.debug("No .env found starting from: %s", os.path.abspath(dotenv_dir or "."))
        return {}
    values = {k: v for k, v in dotenv_values(path).items() if v is not None}
    LOG.debug("Loaded %d key(s) from .env at %s", len(values), path)
    return values


def _lookup(key: str, env: Dict[str, str]) -> Optional[str]:
    v = os.environ.get(key)
    if v is None:
        v = env.get(key)
    if v is None:
        return None
    v = v.strip()
    return v or None


def _int_setting(key: str, env: Dict[str, str], default: int, *, minimum: int = 1) -> int:
    raw = _lookup(key, env)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        LOG.warning("%s=%r is not an integer; falling back to %d", key, raw, default)
        return default
    if value < minimum:
        LOG.warning("%s=%d is below %d; falling back to %d", key, value, minimum, default)
        return default
    return value


@dataclass(frozen=True)
class Settings:
    openai_api_key: Optional[str] = None
    openai_model: str = DEFAULT_OPENAI_MODEL
    openai_base_url: Optional[str] = None
    openai_timeout: int = DEFAULT_OPENAI_TIMEOUT
    max_text_length: int = DEFAULT_MAX_TEXT_LENGTH
    parse_rate_limit: int = DEFAULT_PARSE_RATE_LIMIT
    suggest_rate_limit: int = DEFAULT_SUGGEST_RATE_LIMIT
    rate_window_ms: int = DEFAULT_RATE_WINDOW_MS
    image_reader: str = "tesseract"
    tesseract_lang: str = DEFAULT_TESSERACT_LANG

    def require_api_key(self) -> str:
        """Return the OpenAI key or raise; only AI-backed operations need it."""
        if not self.openai_api_key:
            raise ConfigurationError("OPENAI_API_KEY ist nicht gesetzt.")
        return self.openai_api_key


def load_settings(start_dir: Optional[str] = None) -> Settings:
    """Collect settings from the environment, falling back to the nearest .env."""
    env = _read_dotenv(start_dir)

    image_reader = (_lookup("MENU_IMAGE_READER", env) or "tesseract").lower()
    if image_reader not in IMAGE_READERS:
        LOG.warning("MENU_IMAGE_READER=%r is invalid; expected one of %s. Using 'tesseract'.", image_reader, IMAGE_READERS)
        image_reader = "tesseract"

    settings = Settings(
        openai_api_key=_lookup("OPENAI_API_KEY", env),
        openai_model=_lookup("OPENAI_MODEL", env) or DEFAULT_OPENAI_MODEL,
        openai_base_url=_lookup("OPENAI_BASE_URL", env),
        openai_timeout=_int_setting("OPENAI_TIMEOUT", env, DEFAULT_OPENAI_TIMEOUT),
        max_text_length=_int_setting("MENU_MAX_TEXT_LENGTH", env, DEFAULT_MAX_TEXT_LENGTH),
        parse_rate_limit=_int_setting("MENU_PARSE_RATE_LIMIT", env, DEFAULT_PARSE_RATE_LIMIT),
        suggest_rate_limit=_int_setting("MENU_SUGGEST_RATE_LIMIT", env, DEFAULT_SUGGEST_RATE_LIMIT),
        rate_window_ms=_int_setting("MENU_RATE_WINDOW_MS", env, DEFAULT_RATE_WINDOW_MS),
        image_reader=image_reader,
        tesseract_lang=_lookup("TESSERACT_LANG", env) or DEFAULT_TESSERACT_LANG,
    )
    LOG.debug(
        "Settings: model=%s image_reader=%s max_text_length=%d api_key=%s",
        settings.openai_model,
        settings.image_reader,
        settings.max_text_length,
        "set" if settings.openai_api_key else "missing",
    )
    return settings
