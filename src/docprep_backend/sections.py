"""
Tagged section variants and the parse step that produces them.

Request bodies carry sections as loose mappings whose meaning is selected by
the ``componente`` string. ``parse_section`` turns each mapping into exactly
one variant carrying only the fields its handler needs, so dispatch is a type
check instead of repeated string comparisons.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Union

from .models import SectionDiagnostic
from .utils import ascii_lower, is_present

COMPONENT_KEY = "componente"
CONTENT_KEY = "conteudo"
CONFIG_KEY = "config"
IMAGE_KEY = "imagemBase64"

PHOTO = "foto"
QRCODE = "qrcode"
CHART = "grafico"


@dataclass(frozen=True)
class PhotoSection:
    position: int
    content: Optional[Any]


@dataclass(frozen=True)
class QRCodeSection:
    position: int
    content: Optional[Any]


@dataclass(frozen=True)
class ChartSection:
    position: int
    config: Optional[Any]


@dataclass(frozen=True)
class UnknownSection:
    position: int
    component: Optional[Any]


Section = Union[PhotoSection, QRCodeSection, ChartSection, UnknownSection]


def component_name(raw: Mapping[str, Any]) -> Optional[str]:
    value = raw.get(COMPONENT_KEY)
    if not isinstance(value, str) or not value:
        return None
    return ascii_lower(value)


def parse_section(raw: Any, position: int) -> Section:
    """
    Convert a wire-level section mapping into its variant.

    Missing optional fields become ``None``; handlers decide whether that is a
    skip. Anything that is not a mapping, or has no recognized component, is an
    ``UnknownSection`` and passes through untouched.

    Args:
        raw: The section as received in the request body
        position: 1-based index of the section in the document

    Returns:
        The tagged variant
    """
    if not isinstance(raw, Mapping):
        return UnknownSection(position=position, component=None)

    component = component_name(raw)
    content = raw.get(CONTENT_KEY) if is_present(raw.get(CONTENT_KEY)) else None
    if component == PHOTO:
        return PhotoSection(position=position, content=content)
    if component == QRCODE:
        return QRCodeSection(position=position, content=content)
    if component == CHART:
        config = raw.get(CONFIG_KEY)
        return ChartSection(position=position, config=config if is_present(config) else None)
    return UnknownSection(position=position, component=raw.get(COMPONENT_KEY))


def describe_section(raw: Any, position: int) -> SectionDiagnostic:
    """Build the per-section diagnostic record emitted before dispatch."""
    if not isinstance(raw, Mapping):
        return SectionDiagnostic(position=position, component=None, has_config=False, has_content=False, keys=[])

    component = raw.get(COMPONENT_KEY)
    return SectionDiagnostic(
        position=position,
        component=component if isinstance(component, str) else None,
        has_config=is_present(raw.get(CONFIG_KEY)),
        has_content=is_present(raw.get(CONTENT_KEY)),
        keys=[str(key) for key in raw.keys()],
    )


def apply_result(raw: Dict[str, Any], field: str, value: str) -> None:
    # Handlers only ever write the content or image field
    if field not in (CONTENT_KEY, IMAGE_KEY):
        raise ValueError(f"Refusing to write section field {field!r}")
    raw[field] = value
