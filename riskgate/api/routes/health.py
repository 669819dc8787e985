"""
Health Check Route — GET /health
"""

from __future__ import annotations

from fastapi import APIRouter

from riskgate.models.report_models import REPORT_SCHEMA_VERSION, SUPPORTED_INPUT_VERSIONS

router = APIRouter()


@router.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "ok",
        "version": "1.0.0",
        "reportSchema": REPORT_SCHEMA_VERSION,
        "inputVersions": sorted(SUPPORTED_INPUT_VERSIONS),
    }
