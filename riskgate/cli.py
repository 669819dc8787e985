"""
RiskGate command line — CI gating wrapper around the evaluation pipeline.

Usage:
    riskgate --records plan.json --records tfsec.json --policy policy.yaml
    riskgate --records request.json --format json --output report.json
    cat findings.json | riskgate --records - --severity-maps maps.yaml

Exit codes: 0 pass, 1 block, 2 malformed input.

A records file is either a JSON array of records or a full request document
({"records": [...], "severityMaps": {...}, "policy": {...}}). Policy and
severity-map files may be JSON or YAML.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import uuid
from pathlib import Path
from typing import Any

import yaml

from riskgate.audit.logger import AuditLogger, build_entry
from riskgate.core.errors import MalformedInputError
from riskgate.core.report_renderer import render_text
from riskgate.engine.pipeline import (
    EXIT_MALFORMED_INPUT,
    check_schema_version,
    evaluate_records,
)

logger = logging.getLogger("riskgate.cli")


def load_document(source: str) -> Any:
    """Parse a JSON or YAML document from a path, or stdin when source is '-'."""
    if source == "-":
        text = sys.stdin.read()
        suffix = ".json"
    else:
        path = Path(source)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise MalformedInputError(f"Cannot read {source}: {e}") from e
        suffix = path.suffix.lower()

    try:
        if suffix in (".yaml", ".yml"):
            return yaml.safe_load(text)
        return json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise MalformedInputError(f"Cannot parse {source}: {e}") from e


def collect_inputs(args: argparse.Namespace) -> tuple[list[Any], Any, Any]:
    """Merge every --records document; explicit --policy/--severity-maps win."""
    records: list[Any] = []
    severity_maps: Any = None
    policy: Any = None

    for source in args.records:
        doc = load_document(source)
        if isinstance(doc, list):
            records.extend(doc)
        elif isinstance(doc, dict) and isinstance(doc.get("records"), list):
            check_schema_version(doc.get("schemaVersion"))
            records.extend(doc["records"])
            severity_maps = doc.get("severityMaps", severity_maps)
            policy = doc.get("policy", policy)
        else:
            raise MalformedInputError(
                f"{source}: expected a list of records or an object with a 'records' list"
            )

    if args.severity_maps:
        severity_maps = load_document(args.severity_maps)
    if args.policy:
        policy = load_document(args.policy)
    return records, severity_maps, policy


def _non_negative_int(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: '{value}'") from None
    if n < 0:
        raise argparse.ArgumentTypeError(f"must be 0 or greater, got {n}")
    return n


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="riskgate",
        description="Aggregate infrastructure changes and scanner findings into a pass/block decision",
    )
    p.add_argument("--records", action="append", required=True, metavar="FILE",
                   help="Records file (JSON array or request document); repeatable; '-' for stdin")
    p.add_argument("--severity-maps", metavar="FILE",
                   help="Per-tool severity mapping tables (JSON/YAML)")
    p.add_argument("--policy", metavar="FILE",
                   help="Gate policy (JSON/YAML); built-in default when omitted")
    p.add_argument("--top-n", type=_non_negative_int, default=None,
                   help="Findings to list in the report")
    p.add_argument("--format", choices=["text", "json"], default="text",
                   help="Report output format")
    p.add_argument("--output", metavar="FILE",
                   help="Write the report here instead of stdout")
    p.add_argument("--audit-log", metavar="FILE",
                   help="Append a JSON-lines audit entry for this evaluation")
    p.add_argument("-v", "--verbose", action="store_true",
                   help="Debug logging on stderr")
    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )

    try:
        records, severity_maps, policy = collect_inputs(args)
        result = evaluate_records(
            records, severity_maps=severity_maps, policy=policy, top_n=args.top_n
        )
    except MalformedInputError as e:
        print(f"riskgate: malformed input: {e}", file=sys.stderr)
        return EXIT_MALFORMED_INPUT

    if args.format == "json":
        output = json.dumps(result.report.to_payload(), indent=2)
    else:
        output = render_text(result.report)

    if args.output:
        Path(args.output).write_text(output + "\n", encoding="utf-8")
    else:
        print(output)

    if args.audit_log:
        AuditLogger(args.audit_log).log(build_entry(str(uuid.uuid4())[:8], result))

    return result.exit_code


if __name__ == "__main__":
    sys.exit(main())
