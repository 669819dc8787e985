"""
Evaluate Route — POST /evaluate, GET /audit

Accepts change records and/or scanner findings with optional severity maps
and policy, and returns the report plus the CI exit signal. Presentation
(PR comments, chat messages) is left to the caller.
"""

from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query

from riskgate.api.dependencies import get_audit_logger
from riskgate.audit.logger import AuditLogger, build_entry
from riskgate.config import settings
from riskgate.core.errors import MalformedInputError
from riskgate.engine.pipeline import check_schema_version, evaluate_records
from riskgate.models.report_models import EvaluateRequest, EvaluateResponse

logger = logging.getLogger("riskgate.api.evaluate")

router = APIRouter()


@router.post("/evaluate", response_model=EvaluateResponse)
async def evaluate_endpoint(
    request: EvaluateRequest,
    audit: AuditLogger = Depends(get_audit_logger),
):
    """Run one evaluation. Malformed top-level input → 400."""
    evaluation_id = str(uuid.uuid4())[:8]

    try:
        check_schema_version(request.schema_version)
        result = evaluate_records(
            request.records,
            severity_maps=request.severity_maps,
            policy=request.policy,
            top_n=request.top_n,
        )
    except MalformedInputError as e:
        logger.warning(f"[{evaluation_id}] Malformed input: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    logger.info(
        f"[{evaluation_id}] {result.report.decision.value} "
        f"({result.report.summary.total_records} records scored)"
    )

    if settings.audit_enabled:
        audit.log(build_entry(evaluation_id, result))

    return EvaluateResponse(
        evaluation_id=evaluation_id,
        exit_code=result.exit_code,
        report=result.report,
    )


@router.get("/audit")
async def recent_audit(
    count: int = Query(default=50, ge=1, le=1000),
    audit: AuditLogger = Depends(get_audit_logger),
):
    """Most recent audit entries, oldest first."""
    return {"entries": [e.model_dump(mode="json") for e in audit.read_recent(count)]}
