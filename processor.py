"""
Product processor: raw listing -> normalized product.

Runs source aggregation, every attribute extractor, and the normalizer for
one listing, then attaches a clean model name and provenance metadata. The
processor is the fail-soft boundary of the pipeline: any unexpected error is
logged and the input comes back unchanged.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from extractor import ExtractedSpecs, extract_specifications, infer_brand
from models import ExtractionMetadata, NormalizedProduct, RawProduct, SourceRecord
from normalizer import normalize_specs

logger = logging.getLogger(__name__)

_SHORT_NAME_RE = re.compile(r"^([\w\d]+(?:[-\s][\w\d]+)?)")

# Keys a previous run attached; re-processing replaces them wholesale
_DERIVED_KEYS = {
    "specs",
    "clean_model_name",
    "cleanModelName",
    "extraction_metadata",
    "extractionMetadata",
}


@dataclass
class BatchReport:
    """Outcome counts for one ``process_products`` run."""

    processed: int = 0
    rejected: list[str] = field(default_factory=list)  # error-page listings
    failed: list[str] = field(default_factory=list)  # returned unprocessed


def extract_clean_model_name(brand: str, model: str) -> str:
    """Short display name: the title minus its leading brand, cut to 1-2 tokens.

    "REDTIGER F7NP Front Rear, 4K ..." -> "F7NP Front"
    """
    if not model:
        return model
    stripped = model
    if brand:
        stripped = re.sub(rf"^{re.escape(brand)}\s+", "", model, flags=re.IGNORECASE)

    m = _SHORT_NAME_RE.match(stripped)
    if m:
        return m.group(1)

    words = stripped.split()
    if words:
        return " ".join(words[:2])
    return model


def _build_metadata(extracted: ExtractedSpecs) -> ExtractionMetadata:
    sources_used: dict[str, dict[str, SourceRecord]] = {}
    for group, attributes in extracted.items():
        records = {
            name: SourceRecord(source=spec.source, confidence=spec.confidence, pattern=spec.pattern)
            for name, spec in attributes.items()
            if spec is not None and spec.value is not None
        }
        sources_used[group] = records

    return ExtractionMetadata(
        processing_timestamp=datetime.now(timezone.utc).isoformat(),
        sources_used=sources_used,
    )


def _record_id(raw: Any) -> Any:
    if isinstance(raw, RawProduct):
        return raw.id
    if isinstance(raw, dict):
        return raw.get("id")
    return None


def process_product(raw: RawProduct | dict[str, Any]) -> NormalizedProduct | RawProduct | dict[str, Any] | None:
    """Turn one raw listing into a normalized product.

    Returns None when the listing is an error page. On any other failure the
    error is logged and ``raw`` is returned unchanged.
    """
    try:
        product = raw if isinstance(raw, RawProduct) else RawProduct.model_validate(raw)

        if not product.brand:
            product = product.model_copy(update={"brand": infer_brand(product.model)})

        extracted = extract_specifications(product)
        if extracted is None:
            return None

        data = product.model_dump(exclude=_DERIVED_KEYS)
        return NormalizedProduct(
            **data,
            specs=normalize_specs(extracted),
            clean_model_name=extract_clean_model_name(product.brand, product.model),
            extraction_metadata=_build_metadata(extracted),
        )
    except Exception:
        logger.error(f"Failed to process product {_record_id(raw)!r}", exc_info=True)
        return raw


def process_products(
    raw_products: list[RawProduct | dict[str, Any]],
    report: BatchReport | None = None,
) -> list[NormalizedProduct | RawProduct | dict[str, Any]]:
    """Process a batch; error-page listings are dropped, failures kept as-is."""
    results = []
    for raw in raw_products:
        result = process_product(raw)
        label = str(_record_id(raw))
        if result is None:
            if report is not None:
                report.rejected.append(label)
            continue
        if report is not None:
            if result is raw:
                report.failed.append(label)
            else:
                report.processed += 1
        results.append(result)

    logger.info(f"Processed {len(results)}/{len(raw_products)} products")
    return results
