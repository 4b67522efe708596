"""Environment-backed settings for collaborators and the auto-annotation loop."""

import logging
import os

logger = logging.getLogger(__name__)

DEFAULT_LIBRETRANSLATE_URL = "https://libretranslate.de/translate"
DEFAULT_DEBOUNCE_MS = 180
DEFAULT_MAX_PHRASES = 20


def _get_str(name: str) -> str | None:
    return os.environ.get(name, "").strip() or None


def _get_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("[settings] %s=%r is not an integer; using %d", name, raw, default)
        return default
    if value < 0:
        logger.warning("[settings] %s=%d is negative; using %d", name, value, default)
        return default
    return value


def get_phrase_extraction_url() -> str | None:
    """Phrase-extraction collaborator endpoint; None disables remote extraction."""
    return _get_str("PHRASE_EXTRACTION_URL")


def get_translate_proxy_url() -> str | None:
    """Primary translation proxy; None skips that tier."""
    return _get_str("TRANSLATE_PROXY_URL")


def get_libretranslate_url() -> str:
    return _get_str("LIBRETRANSLATE_URL") or DEFAULT_LIBRETRANSLATE_URL


def get_debounce_ms() -> int:
    return _get_int("AUTO_ANNOTATE_DEBOUNCE_MS", DEFAULT_DEBOUNCE_MS)


def get_max_phrases() -> int:
    return _get_int("AUTO_ANNOTATE_MAX_PHRASES", DEFAULT_MAX_PHRASES)


DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000


def get_host() -> str:
    return _get_str("INFRAREAD_HOST") or DEFAULT_HOST


def get_port() -> int:
    return _get_int("INFRAREAD_PORT", DEFAULT_PORT)
