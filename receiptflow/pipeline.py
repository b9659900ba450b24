"""Pipeline orchestration: parse, validate, enrich, and map receipts."""
from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from receiptflow.core.models import EnrichedReceipt, MappedRecord, ParsedReceipt, ValidationResult
from receiptflow.enrichment.engine import Enricher, create_enricher
from receiptflow.export.sinks import write_csv, write_excel
from receiptflow.ingestion.parser import parse_response
from receiptflow.mapping.field_mapper import FieldMapper
from receiptflow.mapping.templates import records_to_rows
from receiptflow.quality import validate_receipt

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineResult:
    """Everything produced for one receipt; later stages stay ``None`` when rejected."""

    source_name: str
    parsed: ParsedReceipt
    validation: ValidationResult
    enriched: Optional[EnrichedReceipt] = None
    mapped: Optional[MappedRecord] = None
    alerts: Tuple[str, ...] = ()


async def process_receipt(
    payload: Mapping[str, Any],
    enricher: Enricher,
    mapper: FieldMapper | None = None,
    source_name: str = "receipt",
) -> PipelineResult:
    """Run one provider payload through every stage."""

    mapper = mapper or FieldMapper()
    parsed = parse_response(payload)
    validation = validate_receipt(parsed)
    if not validation.is_valid:
        logger.warning("Skipping enrichment for %s: %s", source_name, "; ".join(validation.errors))
        return PipelineResult(source_name, parsed, validation, alerts=validation.errors)

    enriched = await enricher.enrich(parsed)
    mapped = mapper.map(payload, enriched)
    return PipelineResult(
        source_name,
        parsed,
        validation,
        enriched=enriched,
        mapped=mapped,
        alerts=validation.warnings + mapped.warnings,
    )


async def process_receipts(
    payloads: Iterable[Tuple[str, Mapping[str, Any]]],
    enricher: Enricher | None = None,
    mapper: FieldMapper | None = None,
) -> List[PipelineResult]:
    """Process unrelated receipts concurrently with shared, stateless stages."""

    enricher = enricher or create_enricher()
    mapper = mapper or FieldMapper()
    return list(
        await asyncio.gather(
            *(process_receipt(payload, enricher, mapper, source_name=name) for name, payload in payloads)
        )
    )


def load_payloads(data_dir: Path) -> Tuple[List[Tuple[str, Dict[str, Any]]], List[str]]:
    """Read every ``*.json`` provider payload under ``data_dir``.

    Unreadable files are logged and reported as alerts without stopping the
    remaining files from loading.
    """

    payloads: List[Tuple[str, Dict[str, Any]]] = []
    alerts: List[str] = []
    logger.info("Loading payloads from %s", data_dir)

    for path in sorted(data_dir.glob("*.json")):
        try:
            payloads.append((path.name, json.loads(path.read_text(encoding="utf-8"))))
        except (OSError, ValueError):
            logger.exception("Failed to read payload %s", path)
            alerts.append(f"Failed to read payload {path.name}")

    logger.info("Loaded %d payloads", len(payloads))
    return payloads, alerts


def run_pipeline(
    data_dir: Path,
    output_path: Path,
    sink: str = "csv",
    excel_path: Path | None = None,
    enricher: Enricher | None = None,
) -> Path:
    """Load payloads, run every stage, and write the mapped rows."""

    logger.info("Pipeline starting for data dir %s", data_dir)
    payloads, alerts = load_payloads(data_dir)
    for alert in alerts:
        logger.warning("Alert: %s", alert)

    if not payloads:
        message = (
            f"No receipts found under {data_dir}. "
            "Verify the directory exists and includes provider JSON files."
        )
        logger.error(message)
        raise ValueError(message)

    results = asyncio.run(process_receipts(payloads, enricher=enricher))
    mapped = [result.mapped for result in results if result.mapped is not None]
    rejected = len(results) - len(mapped)
    if rejected:
        logger.warning("Rejected %d receipts without usable data", rejected)
    logger.info("Mapped %d receipts", len(mapped))

    rows = records_to_rows(mapped)
    write_csv(rows, output_path)
    logger.info("Wrote CSV output to %s", output_path)

    if sink == "excel":
        excel_target = excel_path or output_path.with_suffix(".xlsx")
        write_excel(rows, excel_target)
        logger.info("Wrote Excel output to %s", excel_target)
    return output_path
