"""
Credential and base-URL resolution for the Docling service.

A configured value is used as-is when it is a non-empty literal. An empty
value or a `${VAR_NAME}` placeholder is looked up through the caller's
secret loader, then falls back to a default.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Iterable, Mapping, Optional

from docling_ocr.config.constants import (
    DEFAULT_DOCLING_BASE_URL,
    DOCLING_API_KEY_ENV,
    DOCLING_BASE_URL_ENV,
)
from docling_ocr.models.dto import AuthConfig, DoclingOCRConfig, OCRContext

logger = logging.getLogger(__name__)

ENV_VAR_PATTERN = re.compile(r"^\$\{(.+)\}$")

Resolver = Callable[[], Optional[str]]


def needs_env_load(value: str) -> bool:
    """True when the value is blank or an environment placeholder."""
    return bool(ENV_VAR_PATTERN.match(value)) or not value.strip()


def get_env_var_name(config_value: str, default_name: str) -> str:
    """Name embedded in a `${...}` placeholder, or `default_name`."""
    match = ENV_VAR_PATTERN.match(config_value)
    if not match:
        return default_name
    return match.group(1).strip() or default_name


def first_resolved(resolvers: Iterable[Resolver]) -> Optional[str]:
    for resolve in resolvers:
        value = resolve()
        if value:
            return value
    return None


def resolve_config_value(
    config_value: str,
    default_env_name: str,
    auth_values: Mapping[str, Optional[str]],
    default_value: str = "",
) -> str:
    """
    Resolve one setting: literal, then loaded secret, then default.

    Args:
      config_value: Raw configured string (literal, placeholder or empty).
      default_env_name: Secret name used when no placeholder is given.
      auth_values: Secrets returned by the loader.
      default_value: Last-resort fallback.

    Returns:
      The resolved value, possibly an empty string.
    """
    env_name = get_env_var_name(config_value, default_env_name)
    resolvers: list[Resolver] = [
        lambda: None if needs_env_load(config_value) else config_value,
        lambda: auth_values.get(env_name),
        lambda: default_value,
    ]
    return first_resolved(resolvers) or ""


async def load_docling_auth_config(
    context: OCRContext,
    config: Optional[DoclingOCRConfig] = None,
) -> AuthConfig:
    """
    Build the AuthConfig for one upload.

    Calls the secret loader at most once, and only when at least one of the
    two values needs resolution. Does not validate the result; an empty API
    key is reported by the caller.

    Args:
      context: Upload context carrying the secret loader and user.
      config: OCR block to resolve from, usually already merged with the
        environment. Defaults to `context.ocr_config`.
    """
    ocr_config = config if config is not None else context.ocr_config
    api_key_config = (ocr_config.api_key if ocr_config else None) or ""
    base_url_config = (ocr_config.base_url if ocr_config else None) or ""

    if not needs_env_load(api_key_config) and not needs_env_load(base_url_config):
        return AuthConfig(api_key=api_key_config, base_url=base_url_config)

    auth_fields: list[str] = []
    optional: set[str] = set()

    if needs_env_load(base_url_config):
        base_url_env = get_env_var_name(base_url_config, DOCLING_BASE_URL_ENV)
        auth_fields.append(base_url_env)
        optional.add(base_url_env)

    if needs_env_load(api_key_config):
        auth_fields.append(get_env_var_name(api_key_config, DOCLING_API_KEY_ENV))

    logger.debug(
        "Loading Docling auth values: %s",
        auth_fields,
        extra={"user_id": context.user_id},
    )
    auth_values = await context.load_auth_values(
        user_id=context.user_id or "",
        auth_fields=auth_fields,
        optional=optional,
    )
    auth_values = auth_values or {}

    api_key = resolve_config_value(api_key_config, DOCLING_API_KEY_ENV, auth_values)
    base_url = resolve_config_value(
        base_url_config,
        DOCLING_BASE_URL_ENV,
        auth_values,
        DEFAULT_DOCLING_BASE_URL,
    )
    return AuthConfig(api_key=api_key, base_url=base_url)
