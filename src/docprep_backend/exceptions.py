"""Exceptions raised by the section preprocessing pipeline."""

from __future__ import annotations


class PreprocessingError(Exception):
    """Base exception for preprocessing errors."""
    pass


class ChartSpecError(PreprocessingError):
    """Exception for chart specifications the rasterizer cannot draw."""
    pass


class SectionSynthesisError(PreprocessingError):
    """A rendering backend failed for one section; the whole document is aborted."""

    kind = "synthesis"

    def __init__(self, message: str, position: int) -> None:
        super().__init__(message)
        self.message = message
        self.position = position


class QRCodeGenerationError(SectionSynthesisError):
    """Exception for QR code encoding failures."""

    kind = "qrcode"


class ChartRenderingError(SectionSynthesisError):
    """Exception for chart rasterization failures."""

    kind = "chart"
