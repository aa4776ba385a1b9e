"""
Document Section Preprocessor - REST API for document enrichment

This package provides a FastAPI-based web service that prepares document
descriptions for rendering. A document is an ordered list of sections
(``secoes``), each typed by its ``componente``:

- ``foto``: raw base64 photo content is normalized to a PNG data URI
- ``qrcode``: the section text is rendered into a QR code image
- ``grafico``: a Chart.js-style configuration is rasterized to an 800x400 PNG

The service returns the enriched document; turning it into a PDF is the job
of a separate renderer.

Key Components:
    - main: FastAPI application and HTTP endpoint definitions
    - preprocessor: Section dispatch and fail-fast orchestration
    - sections: Tagged section variants parsed from request bodies
    - photo: Photo content normalization
    - qrcode_renderer: QR code encoding (qrcode + Pillow)
    - chart_renderer: Chart rasterization (matplotlib)
    - configuration: Config loading and merging logic
    - middleware: Origin allow-list CORS policy

Usage:
    Run the API server with:
        uvicorn docprep_backend.main:app --reload --host 0.0.0.0 --port 3000
"""
