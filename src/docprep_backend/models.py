from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SynthesisKind(str, Enum):
    QRCODE = "qrcode"
    CHART = "chart"


class SectionDiagnostic(BaseModel):
    position: int
    component: Optional[str] = None
    has_config: bool = False
    has_content: bool = False
    keys: List[str] = Field(default_factory=list)


class SynthesisResult(BaseModel):
    position: int
    ok: bool
    field: Optional[str] = None
    value: Optional[str] = None
    error_kind: Optional[SynthesisKind] = None
    message: Optional[str] = None

    @classmethod
    def success(cls, position: int, field: str, value: str) -> "SynthesisResult":
        return cls(position=position, ok=True, field=field, value=value)

    @classmethod
    def failure(cls, position: int, kind: SynthesisKind, message: str) -> "SynthesisResult":
        return cls(position=position, ok=False, error_kind=kind, message=message)


class PreprocessReport(BaseModel):
    document: Any
    diagnostics: List[SectionDiagnostic] = Field(default_factory=list)
    enriched: int = 0
    failure: Optional[SynthesisResult] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


class Document(BaseModel):
    """Request body: sections plus any other top-level keys, kept verbatim."""

    model_config = ConfigDict(extra="allow")

    # Left loose; sections that are not a list of objects pass through unchanged
    secoes: Optional[Any] = None


class HealthStatus(BaseModel):
    status: str
    uptime: float
    timestamp: datetime
