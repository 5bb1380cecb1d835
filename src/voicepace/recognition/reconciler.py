"""Transcript reconciliation for the dynamic correction protocol.

The service may send each fragment either as a plain addition (no ``pgs``
field) or, when dynamic correction is negotiated, tagged ``apd`` (the
previous provisional guess is confirmed and this fragment follows it) or
``rpl`` (this fragment replaces the previous provisional guess).

Two buffers are kept:
- stable: text confirmed not to change further
- provisional: stable text plus the current, still correctable guess
"""

import logging

from .types import CorrectionMode, InboundFragment

logger = logging.getLogger(__name__)


def apply(fragment: InboundFragment, prior_stable: str, prior_provisional: str) -> tuple[str, str]:
    """Merge one fragment into the stable/provisional pair.

    Returns:
        (new_stable, new_provisional)

    """
    text = fragment.text
    mode = fragment.correction_mode

    if mode is CorrectionMode.APPEND:
        new_stable = prior_provisional
        return new_stable, new_stable + text

    if mode is CorrectionMode.REPLACE:
        return prior_stable, prior_stable + text

    return prior_stable + text, prior_provisional


class TranscriptReconciler:
    """Owns the reconciled text of one session.

    Example::

        reconciler = TranscriptReconciler()
        text = reconciler.update(fragment)

    """

    def __init__(self) -> None:
        self.stable = ""
        self.provisional = ""
        self.dynamic_correction = False
        self.fragments_applied = 0

    @property
    def text(self) -> str:
        """Text exposed to consumers."""
        return self.provisional if self.dynamic_correction else self.stable

    def reset(self) -> None:
        self.stable = ""
        self.provisional = ""
        self.dynamic_correction = False
        self.fragments_applied = 0

    def update(self, fragment: InboundFragment) -> str:
        """Apply a fragment and return the text to display."""
        if not fragment.has_result:
            return self.text

        if fragment.correction_mode is not CorrectionMode.NONE:
            self.dynamic_correction = True

        self.stable, self.provisional = apply(fragment, self.stable, self.provisional)
        if not self.dynamic_correction:
            # Until the first apd/rpl everything received is confirmed
            self.provisional = self.stable
        self.fragments_applied += 1
        logger.debug(
            f"Fragment #{self.fragments_applied} ({fragment.correction_mode.name}): "
            f"stable={len(self.stable)} chars, provisional={len(self.provisional)} chars"
        )
        return self.text
