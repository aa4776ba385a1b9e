from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import JSONResponse

from .configuration import load_settings, parse_allowed_origins
from .exceptions import ChartRenderingError, QRCodeGenerationError
from .middleware import AllowListCORSMiddleware
from .models import Document, HealthStatus
from .preprocessor import SectionPreprocessor

logger = logging.getLogger(__name__)

settings = load_settings()
logging.getLogger("docprep_backend").setLevel(str(settings.logging.level).upper())

public_api_url = settings.server.public_api_url or None
servers = [{"url": public_api_url, "description": "Production server"}] if public_api_url else None
if public_api_url:
    logger.info(f"OpenAPI servers set to: {public_api_url}")

app = FastAPI(title="Document Section Preprocessor API", version="0.1.0", servers=servers)

app.add_middleware(
    AllowListCORSMiddleware,
    allowed_origins=parse_allowed_origins(settings.cors.allowed_origins),
    public_api_url=public_api_url,
)

preprocessor = SectionPreprocessor.from_settings(settings)
_started_at = time.monotonic()


def get_preprocessor() -> SectionPreprocessor:
    return preprocessor


@app.get("/health", response_model=HealthStatus)
def healthcheck() -> HealthStatus:
    return HealthStatus(
        status="ok",
        uptime=time.monotonic() - _started_at,
        timestamp=datetime.now(timezone.utc),
    )


@app.get("/api-docs.json")
def api_docs() -> JSONResponse:
    return JSONResponse(content=app.openapi())


@app.post("/preprocess")
async def preprocess_document(
    document: Document,
    service: SectionPreprocessor = Depends(get_preprocessor),
) -> Dict[str, Any]:
    payload = document.model_dump(exclude_unset=True)
    try:
        return await service.preprocess(payload)
    except QRCodeGenerationError as exc:  # noqa: BLE001
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except ChartRenderingError as exc:  # noqa: BLE001
        raise HTTPException(status_code=500, detail=str(exc)) from exc
