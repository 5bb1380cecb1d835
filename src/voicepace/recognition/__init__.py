"""Streaming recognition: signing, wire protocol, reconciliation and sessions.

Exports are resolved lazily; the audio package imports ``recognition.types``
and must not pull in the session module while it loads.
"""

from importlib import import_module
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .config import SessionSettings
    from .reconciler import TranscriptReconciler
    from .registry import create_service, get_available_vendors, register_vendor
    from .session import StreamingRecognitionSession
    from .signer import AuthSigner
    from .transport import Transport, WebSocketTransport
    from .types import Credentials, InboundFragment, RecognitionResult, SessionState

__all__ = [
    "AuthSigner",
    "Credentials",
    "InboundFragment",
    "RecognitionResult",
    "SessionSettings",
    "SessionState",
    "StreamingRecognitionSession",
    "TranscriptReconciler",
    "Transport",
    "WebSocketTransport",
    "create_service",
    "get_available_vendors",
    "register_vendor",
]

_LAZY_EXPORTS = {
    "AuthSigner": (".signer", "AuthSigner"),
    "Credentials": (".types", "Credentials"),
    "InboundFragment": (".types", "InboundFragment"),
    "RecognitionResult": (".types", "RecognitionResult"),
    "SessionSettings": (".config", "SessionSettings"),
    "SessionState": (".types", "SessionState"),
    "StreamingRecognitionSession": (".session", "StreamingRecognitionSession"),
    "TranscriptReconciler": (".reconciler", "TranscriptReconciler"),
    "Transport": (".transport", "Transport"),
    "WebSocketTransport": (".transport", "WebSocketTransport"),
    "create_service": (".registry", "create_service"),
    "get_available_vendors": (".registry", "get_available_vendors"),
    "register_vendor": (".registry", "register_vendor"),
}


def __getattr__(name):
    if name not in _LAZY_EXPORTS:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

    module_name, attr_name = _LAZY_EXPORTS[name]
    module = import_module(module_name, __name__)
    value = getattr(module, attr_name)
    globals()[name] = value
    return value
