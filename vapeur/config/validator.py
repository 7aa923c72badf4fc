"""Configuration validation."""

import logging
from typing import Dict, Any, List

logger = logging.getLogger(__name__)

VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
VALID_VALIDATION_MODES = ['disabled', 'normal']


class ValidationError(Exception):
    """Configuration validation errors."""
    pass


def validate_config(config: Dict[str, Any]) -> None:
    """
    Validate configuration structure and values.

    Args:
        config: Configuration dictionary from loader

    Raises:
        ValidationError: If configuration is invalid
    """
    errors = []

    errors.extend(_validate_paths(config.get('paths', {})))
    errors.extend(_validate_api(config.get('api', {})))
    errors.extend(_validate_media(config.get('media', {})))
    errors.extend(_validate_logging(config.get('logging', {})))

    if errors:
        raise ValidationError(
            "Configuration validation failed:\n  - " + "\n  - ".join(errors)
        )


def _validate_paths(section: Dict[str, Any]) -> List[str]:
    """Validate paths section."""
    errors = []

    for path_key in ['roms', 'gamelists', 'media', 'folders_file']:
        value = section.get(path_key)
        if not value or not isinstance(value, str):
            errors.append(f"paths.{path_key} is required")
        elif path_key != 'folders_file' and value.startswith('/'):
            errors.append(f"paths.{path_key} must be relative to the ES-DE folder")

    return errors


def _validate_retries(section: Dict[str, Any], prefix: str) -> List[str]:
    errors = []

    max_retries = section.get('max_retries', 3)
    if not isinstance(max_retries, int) or isinstance(max_retries, bool) or not 1 <= max_retries <= 10:
        errors.append(f"{prefix}.max_retries must be an integer between 1 and 10")

    backoff = section.get('retry_backoff_seconds', 1)
    if not _is_number(backoff) or backoff < 0:
        errors.append(f"{prefix}.retry_backoff_seconds must be a non-negative number")

    return errors


def _validate_api(section: Dict[str, Any]) -> List[str]:
    """Validate api section."""
    errors = []

    timeout = section.get('request_timeout', 30)
    if not _is_number(timeout) or timeout <= 0:
        errors.append("api.request_timeout must be a positive number")

    errors.extend(_validate_retries(section, 'api'))

    language = section.get('language', 'en')
    if not isinstance(language, str) or not language:
        errors.append("api.language must be a language code")

    country = section.get('country', 'us')
    if not isinstance(country, str) or len(country) != 2:
        errors.append("api.country must be a 2-letter code")

    return errors


def _validate_media(section: Dict[str, Any]) -> List[str]:
    """Validate media section."""
    errors = []

    timeout = section.get('download_timeout', 120)
    if not _is_number(timeout) or timeout <= 0:
        errors.append("media.download_timeout must be a positive number")

    errors.extend(_validate_retries(section, 'media'))

    chunk_size = section.get('chunk_size', 65536)
    if not isinstance(chunk_size, int) or isinstance(chunk_size, bool) or chunk_size <= 0:
        errors.append("media.chunk_size must be a positive integer")

    mode = section.get('validation_mode', 'disabled')
    if mode not in VALID_VALIDATION_MODES:
        errors.append(
            f"media.validation_mode must be one of {VALID_VALIDATION_MODES}"
        )

    return errors


def _validate_logging(section: Dict[str, Any]) -> List[str]:
    """Validate logging section."""
    errors = []

    level = section.get('level', 'INFO')
    if not isinstance(level, str) or level.upper() not in VALID_LOG_LEVELS:
        errors.append(f"logging.level must be one of {VALID_LOG_LEVELS}")

    log_file = section.get('file')
    if log_file is not None and not isinstance(log_file, str):
        errors.append("logging.file must be a path string")

    return errors


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
