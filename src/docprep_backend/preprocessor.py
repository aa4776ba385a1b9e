"""
Section preprocessing for document descriptions.

This module enriches the sections of a document before it is handed to the
document renderer:
- ``foto`` sections get raw base64 content rewritten as a PNG data URI
- ``qrcode`` sections get their ``conteudo`` rendered into ``imagemBase64``
- ``grafico`` sections get their chart ``config`` rasterized into ``imagemBase64``

Sections are mutated in place. Each handler returns a ``SynthesisResult``; the
first failed QR code or chart aborts the document, and sections after it are
left untouched. Sections enriched before the failure are not rolled back, so
callers discard the document on error.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, List, Mapping, Optional, Sequence

from omegaconf import DictConfig

from .chart_renderer import ChartRasterizer
from .configuration import load_settings
from .exceptions import ChartRenderingError, QRCodeGenerationError, SectionSynthesisError
from .models import PreprocessReport, SynthesisKind, SynthesisResult
from .photo import DEFAULT_MIN_BASE64_LENGTH, normalize_photo
from .qrcode_renderer import QRCodeEncoder
from .sections import (
    IMAGE_KEY,
    ChartSection,
    PhotoSection,
    QRCodeSection,
    Section,
    apply_result,
    describe_section,
    parse_section,
)
from .utils import png_data_uri

logger = logging.getLogger(__name__)

SECTIONS_KEY = "secoes"

CHART_FAILURE_MESSAGE = "Failed to render chart."

_ERRORS_BY_KIND = {
    SynthesisKind.QRCODE: QRCodeGenerationError,
    SynthesisKind.CHART: ChartRenderingError,
}


class SectionPreprocessor:
    """
    Enrich document sections with normalized or rendered image data.

    The QR encoder and chart rasterizer are injected so tests and callers can
    swap them; both are synchronous and run in worker threads.

    Attributes:
        qr_encoder: Backend turning text into PNG bytes
        chart_rasterizer: Backend turning chart specs into PNG bytes
        min_base64_length: Shortest raw photo payload treated as base64
        max_concurrency: Number of sections synthesized at once (1 = sequential)
    """

    def __init__(
        self,
        qr_encoder: Optional[QRCodeEncoder] = None,
        chart_rasterizer: Optional[ChartRasterizer] = None,
        min_base64_length: int = DEFAULT_MIN_BASE64_LENGTH,
        max_concurrency: int = 1,
    ) -> None:
        self.qr_encoder = qr_encoder or QRCodeEncoder()
        self.chart_rasterizer = chart_rasterizer or ChartRasterizer()
        self.min_base64_length = min_base64_length
        self.max_concurrency = max(1, int(max_concurrency))

    @classmethod
    def from_settings(cls, settings: DictConfig) -> "SectionPreprocessor":
        qr = settings.qrcode
        chart = settings.chart
        return cls(
            qr_encoder=QRCodeEncoder(
                error_correction=qr.error_correction,
                width=qr.width,
                margin=qr.margin,
                dark=qr.dark,
                light=qr.light,
            ),
            chart_rasterizer=ChartRasterizer(width=chart.width, height=chart.height, dpi=chart.dpi),
            min_base64_length=settings.photo.min_base64_length,
            max_concurrency=settings.preprocessing.max_concurrency,
        )

    async def preprocess(self, document: Any) -> Any:
        """
        Enrich ``document`` in place and return it.

        Raises:
            QRCodeGenerationError: If a QR code could not be encoded
            ChartRenderingError: If a chart could not be rendered
        """
        report = await self.run(document)
        if report.failure is not None:
            failure = report.failure
            error_cls = _ERRORS_BY_KIND.get(failure.error_kind, SectionSynthesisError)
            raise error_cls(failure.message or "Section synthesis failed", position=failure.position)
        return report.document

    async def run(self, document: Any) -> PreprocessReport:
        """
        Enrich ``document`` in place and report what happened without raising.

        Documents without a ``secoes`` list are returned unchanged.
        """
        report = PreprocessReport(document=document)
        sections = document.get(SECTIONS_KEY) if isinstance(document, Mapping) else None
        if not isinstance(sections, list):
            return report

        if self.max_concurrency == 1:
            await self._run_sequential(sections, report)
        else:
            await self._run_concurrent(sections, report)

        if report.ok:
            logger.info(f"Preprocessed {len(sections)} section(s), {report.enriched} enriched")
        else:
            logger.warning(f"Preprocessing aborted at section #{report.failure.position} after {report.enriched} enriched")
        return report

    async def _run_sequential(self, sections: List[Any], report: PreprocessReport) -> None:
        for position, raw in enumerate(sections, start=1):
            section = self._describe(raw, position, report)
            result = await self._handle(section)
            if not self._apply(raw, result, report):
                return

    async def _run_concurrent(self, sections: List[Any], report: PreprocessReport) -> None:
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def bounded(section: Section) -> Optional[SynthesisResult]:
            async with semaphore:
                return await self._handle(section)

        parsed = [self._describe(raw, position, report) for position, raw in enumerate(sections, start=1)]
        results: Sequence[Optional[SynthesisResult]] = await asyncio.gather(*(bounded(section) for section in parsed))

        # Applied in document order so the outcome matches sequential processing
        for raw, result in zip(sections, results):
            if not self._apply(raw, result, report):
                return

    def _describe(self, raw: Any, position: int, report: PreprocessReport) -> Section:
        diagnostic = describe_section(raw, position)
        report.diagnostics.append(diagnostic)
        logger.debug(f"Processing section #{position}: {diagnostic.model_dump()}")
        return parse_section(raw, position)

    def _apply(self, raw: Any, result: Optional[SynthesisResult], report: PreprocessReport) -> bool:
        if result is None:
            return True
        if not result.ok:
            report.failure = result
            return False
        apply_result(raw, result.field, result.value)
        report.enriched += 1
        return True

    async def _handle(self, section: Section) -> Optional[SynthesisResult]:
        if isinstance(section, PhotoSection):
            return normalize_photo(section, self.min_base64_length)
        if isinstance(section, QRCodeSection):
            return await self._synthesize_qrcode(section)
        if isinstance(section, ChartSection):
            return await self._synthesize_chart(section)
        return None

    async def _synthesize_qrcode(self, section: QRCodeSection) -> Optional[SynthesisResult]:
        if section.content is None:
            logger.warning(f"Section #{section.position} is a QR code but has no 'conteudo'")
            return None

        text = str(section.content)
        try:
            payload = await asyncio.to_thread(self.qr_encoder.encode, text)
        except Exception as exc:  # noqa: BLE001
            logger.error(f"QR code generation failed for section #{section.position}: {exc!r} (conteudo={text!r})")
            return SynthesisResult.failure(section.position, SynthesisKind.QRCODE, f"Failed to generate QR code for: {text}")

        logger.info(f"QR code generated for section #{section.position}")
        return SynthesisResult.success(section.position, IMAGE_KEY, png_data_uri(payload))

    async def _synthesize_chart(self, section: ChartSection) -> Optional[SynthesisResult]:
        if section.config is None:
            logger.warning(f"Section #{section.position} is a chart but has no 'config'")
            return None

        try:
            payload = await asyncio.to_thread(self.chart_rasterizer.render, section.config)
        except Exception as exc:  # noqa: BLE001
            logger.error(f"Chart rendering failed for section #{section.position}: {exc!r} (config={section.config!r})")
            return SynthesisResult.failure(section.position, SynthesisKind.CHART, CHART_FAILURE_MESSAGE)

        logger.info(f"Chart generated for section #{section.position}")
        return SynthesisResult.success(section.position, IMAGE_KEY, png_data_uri(payload))


async def preprocess(document: Any, preprocessor: Optional[SectionPreprocessor] = None) -> Any:
    """
    Enrich ``document`` with a preprocessor built from the default settings.

    Pass ``preprocessor`` to reuse configured backends across calls.
    """
    if preprocessor is None:
        preprocessor = SectionPreprocessor.from_settings(load_settings())
    return await preprocessor.preprocess(document)
