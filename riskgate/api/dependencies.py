"""
FastAPI Dependencies — Shared singletons injected via Depends().
"""

from __future__ import annotations

from functools import lru_cache

from riskgate.audit.logger import AuditLogger


@lru_cache
def get_audit_logger() -> AuditLogger:
    """Shared audit logger singleton."""
    return AuditLogger()
