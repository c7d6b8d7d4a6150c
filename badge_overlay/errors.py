"""
Error taxonomy for Badge Overlay.

Every error carries the pipeline stage that raised it and, when known, the
label being processed, so a failure message is diagnosable on its own.
"""

from typing import Optional


class BadgeError(Exception):
    """Base class for all badge generation failures."""

    kind = 'BadgeError'
    default_stage = 'generate'

    def __init__(self, message: str, label: Optional[str] = None, stage: Optional[str] = None):
        self.reason = message
        self.label = label
        self.stage = stage or self.default_stage
        super().__init__(self._format())

    def _format(self) -> str:
        if self.label is None:
            return f"[{self.kind}] stage={self.stage}: {self.reason}"
        return f"[{self.kind}] stage={self.stage} label={self.label!r}: {self.reason}"

    def with_label(self, label: str) -> 'BadgeError':
        """Attach the label once it is known to the caller."""
        if self.label is None:
            self.label = label
            self.args = (self._format(),)
        return self


class DecodeError(BadgeError):
    """Source image buffer is empty, unsupported, truncated or corrupt."""

    kind = 'DecodeError'
    default_stage = 'decode'


class CompositeError(BadgeError):
    """Badge placement is outside the image, or rasterizing/encoding failed."""

    kind = 'CompositeError'
    default_stage = 'composite'


class PersistError(BadgeError):
    """Storage layer refused the write (disk full, permission denied, ...)."""

    kind = 'PersistError'
    default_stage = 'persist'


class GenerationTimeout(BadgeError):
    """Label did not finish within the batch deadline."""

    kind = 'Timeout'
    default_stage = 'batch'
