"""Recognition vendor registry.

Keep vendor selection centralized here so callers never switch on vendor
strings themselves. Entries are validated when registered; asking for an
unknown vendor raises ConfigurationError.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ServiceFactory = Callable[..., Any]

_REGISTRY: dict[str, ServiceFactory] = {}


def _normalize(tag: str) -> str:
    if not isinstance(tag, str) or not tag.strip():
        raise ConfigurationError(f"Vendor tag must be a non-empty string, got {tag!r}")
    return tag.strip().lower()


def register_vendor(tag: str, factory: ServiceFactory, replace: bool = False) -> None:
    """Register a constructor for a vendor tag.

    Raises:
        ConfigurationError: If the tag is empty, the factory is not callable,
            or the tag is already registered and ``replace`` is False

    """
    key = _normalize(tag)
    if not callable(factory):
        raise ConfigurationError(f"Factory for vendor '{key}' is not callable: {factory!r}")
    if key in _REGISTRY and not replace and _REGISTRY[key] is not factory:
        raise ConfigurationError(f"Vendor '{key}' is already registered")
    _REGISTRY[key] = factory
    logger.debug("Registered recognition vendor %s -> %r", key, factory)


def unregister_vendor(tag: str) -> None:
    _REGISTRY.pop(_normalize(tag), None)


def get_available_vendors() -> list[str]:
    """Return registered vendor tags."""
    _ensure_builtin_vendors()
    return sorted(_REGISTRY)


def create_service(tag: str, **kwargs: Any) -> Any:
    """Build a recognition service for ``tag``."""
    _ensure_builtin_vendors()
    key = _normalize(tag)
    factory = _REGISTRY.get(key)
    if factory is None:
        raise ConfigurationError(
            f"Unknown recognition vendor: '{tag}'\n"
            f"Available vendors: {', '.join(sorted(_REGISTRY)) or '(none)'}\n"
            f'Check your voicepace config: [voicepace.session] vendor = "xfyun"'
        )
    return factory(**kwargs)


def _ensure_builtin_vendors() -> None:
    if "xfyun" in _REGISTRY:
        return
    # Imported here to avoid a cycle with the session module
    from .session import StreamingRecognitionSession

    register_vendor("xfyun", StreamingRecognitionSession)
