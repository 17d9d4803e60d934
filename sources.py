"""
Source aggregation: the ordered, typed text sources a listing offers.

Each raw field is narrowed once here (title string, joined bullets, vendor
mappings), so extractors only ever see plain text plus, for vendor mappings,
the original key/value pairs.

Vendor mappings (structuredSpecs, technicalDetails) contribute the text of
their values, so both the scalar tables and the boolean regexes can match
them in source order. A "Night Vision: Starlight" entry therefore sets
nightVision from structuredSpecs ahead of the description, before the
key-based structured fallback is ever consulted.
"""

from dataclasses import dataclass, field
from typing import Any

from models import RawProduct
from patterns import MAX_SOURCE_PRIORITY


@dataclass(frozen=True)
class Source:
    """One place specification text can come from."""

    name: str
    priority: int  # 0 (least trusted) .. MAX_SOURCE_PRIORITY
    text: str = ""
    fields: dict[str, Any] = field(default_factory=dict)  # vendor key/value pairs

    @property
    def weight(self) -> float:
        """Multiplier applied to a pattern's base confidence."""
        return self.priority / MAX_SOURCE_PRIORITY


def _mapping_text(mapping: dict[str, Any]) -> str:
    """Join the scalar values of a vendor mapping (keys are left out)."""
    parts: list[str] = []
    for value in mapping.values():
        if isinstance(value, (list, tuple)):
            parts.extend(str(v) for v in value if v is not None and not isinstance(v, dict))
        elif value is not None and not isinstance(value, dict):
            parts.append(str(value))
    return " ".join(parts)


def aggregate_sources(product: RawProduct) -> list[Source]:
    """Build the fixed-order source list for a listing.

    Order is model, features, structuredSpecs, description, technicalDetails.
    Extractors walk it front to back and keep the first match.
    """
    structured = product.structured_specs or {}
    technical = product.technical_details or {}
    features = " ".join(f for f in product.features if isinstance(f, str))

    return [
        Source("model", 2, text=product.model or ""),
        Source("features", 1, text=features),
        Source("structuredSpecs", 3, text=_mapping_text(structured), fields=dict(structured)),
        Source("description", 0, text=product.description or ""),
        Source("technicalDetails", 3, text=_mapping_text(technical), fields=dict(technical)),
    ]


def find_source(sources: list[Source], name: str) -> Source | None:
    for source in sources:
        if source.name == name:
            return source
    return None
