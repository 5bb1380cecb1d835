"""JSON wire format of the dictation service.

Outbound messages are one JSON object each: a handshake carrying the common
and business parameters plus ``status=0``, followed by audio frames with
``status=1`` (continue) or ``status=2`` (final). Inbound messages carry a
``code`` (0 on success) and a ``data`` block with the recognized words.
"""

import base64
import json
from dataclasses import dataclass

from ..exceptions import ParseError
from .types import CorrectionMode, Credentials, FrameStatus, InboundFragment

AUDIO_ENCODING = "raw"
DOMAIN = "iat"
ACCENT = "mandarin"
DEFAULT_VAD_EOS_MS = 10000


def audio_format(sample_rate: int = 16000) -> str:
    return f"audio/L16;rate={sample_rate}"


@dataclass(frozen=True)
class OutboundPacket:
    """Wire unit sent per audio frame."""

    status: FrameStatus
    audio_base64: str = ""
    format: str = audio_format()
    encoding: str = AUDIO_ENCODING

    @classmethod
    def from_audio(cls, payload: bytes, status: FrameStatus, sample_rate: int = 16000) -> "OutboundPacket":
        return cls(
            status=status,
            audio_base64=base64.b64encode(payload).decode("ascii"),
            format=audio_format(sample_rate),
        )

    def to_dict(self) -> dict:
        data = {"status": int(self.status), "format": self.format, "encoding": self.encoding}
        if self.audio_base64 or self.status != FrameStatus.INITIAL:
            data["audio"] = self.audio_base64
        return {"data": data}

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


def build_handshake(
    credentials: Credentials,
    vad_eos: int = DEFAULT_VAD_EOS_MS,
    dynamic_correction: bool = False,
) -> dict:
    """Build the first message of a connection (status=0, no audio)."""
    business = {
        "language": credentials.language or "zh_cn",
        "domain": DOMAIN,
        "accent": ACCENT,
        "vad_eos": vad_eos,
    }
    if dynamic_correction:
        # Requires the dynamic correction feature enabled on the console
        business["dwa"] = "wpgs"

    packet = OutboundPacket(status=FrameStatus.INITIAL, format=audio_format(credentials.sample_rate))
    return {
        "common": {"app_id": credentials.app_id},
        "business": business,
        **packet.to_dict(),
    }


def parse_inbound(message: str | bytes) -> InboundFragment:
    """Parse one inbound message into an InboundFragment.

    Raises:
        ParseError: If the message is not JSON or its result block is malformed

    """
    try:
        payload = json.loads(message)
    except (TypeError, ValueError) as e:
        raise ParseError(f"Invalid JSON from recognition service: {e}", cause=e) from e

    if not isinstance(payload, dict):
        raise ParseError(f"Unexpected message type: {type(payload).__name__}")

    try:
        code = int(payload.get("code", 0))
    except (TypeError, ValueError) as e:
        raise ParseError(f"Invalid code field: {payload.get('code')!r}", cause=e) from e

    data = payload.get("data") or {}
    if not isinstance(data, dict):
        raise ParseError("Field 'data' is not an object")
    status = data.get("status", 0)

    result = data.get("result")
    words: list[str] = []
    mode = CorrectionMode.NONE
    if result is not None:
        try:
            for segment in result.get("ws", []):
                candidates = segment.get("cw") or []
                if candidates:
                    words.append(str(candidates[0].get("w", "")))
            mode = CorrectionMode(result.get("pgs"))
        except (AttributeError, TypeError, ValueError) as e:
            raise ParseError(f"Malformed result block: {e}", cause=e) from e

    return InboundFragment(
        words=tuple(words),
        correction_mode=mode,
        is_finished=code == 0 and status == FrameStatus.FINAL,
        code=code,
        status=status,
        sid=str(payload.get("sid", "")),
        message=str(payload.get("message", "")),
        has_result=result is not None,
        raw=payload,
    )

