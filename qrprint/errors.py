"""Error taxonomy for composite and card rendering.

Every error is terminal for the call that raised it and names the stage
that failed, so callers can tell a flaky fetch (worth retrying) from an
invariant violation (not worth retrying).
"""

from enum import Enum


class Stage(Enum):
    FETCH = "fetch"
    RESOLVE_REGION = "resolve-region"
    RENDER = "render"
    SERIALIZE = "serialize"


class QRPrintError(Exception):
    """Base class for all rendering failures."""

    default_stage = Stage.RENDER

    def __init__(self, message: str, stage: Stage | None = None):
        super().__init__(message)
        self.message = message
        self.stage = stage or self.default_stage

    @property
    def retryable(self) -> bool:
        return self.stage is Stage.FETCH

    def __str__(self) -> str:
        return f"[{self.stage.value}] {self.message}"


class AssetUnavailable(QRPrintError):
    """Source image or photo unreachable or undecodable."""

    default_stage = Stage.FETCH


class PayloadTooLarge(QRPrintError):
    """QR payload exceeds encodable capacity at the requested size / ECC level."""


class RegionInvalid(QRPrintError):
    """Placement violates the minimum-size invariant or cannot be resolved."""

    default_stage = Stage.RESOLVE_REGION


class RenderFailure(QRPrintError):
    """Missing font or resource, canvas allocation or encode failure."""
