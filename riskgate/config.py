"""
RiskGate Configuration — pydantic-settings based.

All settings are read from environment variables (prefix ``RISKGATE_``) or a
.env file. Nothing is required: the engine runs with zero configuration.
Policies and severity maps are per-evaluation inputs, not settings.
"""

from pydantic import Field
from pydantic_settings import BaseSettings

from riskgate.models.normalized_models import Severity


class Settings(BaseSettings):
    """Application-wide settings sourced from environment variables."""

    # ── Classification ──
    stateful_resource_types: list[str] = Field(
        default=[
            "aws_db_instance",
            "aws_rds_cluster*",
            "aws_dynamodb_table",
            "aws_ebs_volume",
            "aws_efs_file_system",
            "aws_elasticache_*",
            "aws_s3_bucket",
            "google_sql_database_instance",
            "google_compute_disk",
            "google_storage_bucket",
            "azurerm_*_database",
            "azurerm_*_server",
            "azurerm_managed_disk",
            "azurerm_storage_account",
            "vault_mount",
        ],
        description="fnmatch patterns for resource types holding persistent state",
    )
    sensitive_value_markers: list[str] = Field(
        default=["sensitive", "(sensitive)", "(sensitive value)"],
        description="Attribute values that mark a field as sensitive/masked",
    )
    unmapped_severity_fallback: Severity = Field(
        default=Severity.MEDIUM,
        description="Severity assigned when a native severity has no mapping (fail closed)",
    )

    # ── Reporting ──
    default_top_n: int = Field(
        default=10, ge=0, description="Findings listed in the report's top-N section"
    )

    # ── Server ──
    port: int = Field(default=5001, description="Server port")
    host: str = Field(default="0.0.0.0", description="Server bind host")
    cors_origins: list[str] = Field(
        default=["*"], description="Allowed CORS origins"
    )

    # ── Audit ──
    audit_enabled: bool = Field(
        default=True, description="Append one JSON line per service evaluation"
    )
    audit_log_path: str = Field(
        default="riskgate-audit.jsonl", description="Path to JSON-lines audit log file"
    )

    model_config = {
        "env_prefix": "RISKGATE_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


# Singleton instance, imported by other modules
settings = Settings()
