"""
Specification extractor: heuristic attribute extraction from listing text.

For every attribute the sources from ``sources.aggregate_sources`` are walked
in their fixed order and the pattern table for that attribute is applied:

  A) Scalar attributes: first in-range match wins, confidence is the row's
     base confidence scaled by source priority; otherwise a documented
     default (source="default") or None.
  B) Boolean flags: first textual match wins; otherwise a structuredSpecs key
     naming the attribute decides; otherwise False.

Extraction never raises on a miss. Listings whose title is an error page are
rejected as a whole.
"""

import logging
import re

from config import KNOWN_BRANDS
from models import RawProduct, SpecField
from patterns import (
    BOOLEAN_CONFIDENCE,
    BOOLEAN_DEFAULT_CONFIDENCE,
    BOOLEAN_PATTERNS,
    CHANNEL_PATTERNS,
    DEFAULTS,
    ERROR_PAGE_RE,
    FOV_PATTERNS,
    FPS_PATTERNS,
    INCLUDED_STORAGE_PATTERNS,
    MAX_STORAGE_PATTERNS,
    MODEL_NUMBER_PATTERNS,
    OPERATING_TEMPERATURE_PATTERNS,
    POWER_SOURCE_PATTERNS,
    RESOLUTION_PATTERNS,
    SCREEN_SIZE_PATTERNS,
    SCREEN_TYPE_PATTERNS,
    SIZE_DESCRIPTION_PATTERNS,
    STRUCTURED_BOOL_CONFIDENCE,
    STRUCTURED_STRING_CONFIDENCE,
    STRUCTURED_TRUE_RE,
    VALUE_RANGES,
    WIFI_FREQUENCY_PATTERNS,
    Pattern,
)
from sources import Source, aggregate_sources, find_source

logger = logging.getLogger(__name__)

# Raw (pre-normalization) tree: group -> attribute -> SpecField or None
ExtractedSpecs = dict[str, dict[str, SpecField | None]]


# ===== Main Entry Point =====


def extract_specifications(product: RawProduct) -> ExtractedSpecs | None:
    """Extract every specification attribute of a listing.

    Returns None for dead listings (error-page titles) so callers drop the
    record instead of storing a half-filled one.
    """
    if is_error_page(product.model):
        logger.warning(f"Rejecting error-page listing {product.id!r}: {product.model[:80]!r}")
        return None

    sources = aggregate_sources(product)

    return {
        "video": {
            "resolution": extract_resolution(sources),
            "fps": extract_frame_rate(sources),
            "hdr": extract_boolean(sources, "hdr"),
            "nightVision": extract_boolean(sources, "nightVision"),
            "wdr": extract_boolean(sources, "wdr"),
        },
        "physical": {
            "fov": extract_fov(sources),
            "screenSize": extract_screen_size(sources),
            "screenType": extract_screen_type(sources),
            "channels": extract_channels(sources),
            "sizeDescription": extract_size_description(sources),
        },
        "connectivity": {
            "wifi": extract_boolean(sources, "wifi"),
            "wifiFrequency": extract_wifi_frequency(sources),
            "bluetooth": extract_boolean(sources, "bluetooth"),
            "gps": extract_boolean(sources, "gps"),
            "voiceControl": extract_boolean(sources, "voiceControl"),
        },
        "features": {
            "parkingMode": extract_boolean(sources, "parkingMode"),
            "motionDetection": extract_boolean(sources, "motionDetection"),
            "loopRecording": extract_boolean(sources, "loopRecording"),
            "emergencyRecording": extract_boolean(sources, "emergencyRecording"),
            "timeLapse": extract_boolean(sources, "timeLapse"),
            "remoteMonitoring": extract_boolean(sources, "remoteMonitoring"),
        },
        "storage": {
            "includedStorage": extract_included_storage(sources),
            "maxStorage": extract_max_storage(sources),
            "memoryCardIncluded": extract_boolean(sources, "memoryCardIncluded"),
        },
        "additional": {
            "modelNumber": extract_model_number(sources),
            "operatingTemperature": extract_operating_temperature(sources),
            "powerSource": extract_power_source(sources),
        },
    }


def is_error_page(title: str | None) -> bool:
    """True when a scraped title is an error/unavailable page, not a product."""
    return bool(title) and ERROR_PAGE_RE.search(title) is not None


def infer_brand(title: str, known_brands: list[str] = KNOWN_BRANDS) -> str:
    """Guess the brand from a title: known brand anywhere, else the first word."""
    for brand in known_brands:
        if re.search(rf"(?<!\w){re.escape(brand)}(?!\w)", title, re.IGNORECASE):
            return brand
    words = title.split()
    return words[0] if words else ""


# =====================================================================
# Stage A: Pattern-matched scalar attributes
# =====================================================================


def _in_range(attribute: str, value) -> bool:
    bounds = VALUE_RANGES.get(attribute)
    if bounds is None:
        return True
    low, high = bounds
    if value <= low:
        return False
    return high is None or value <= high


def _match_patterns(sources: list[Source], patterns: list[Pattern], attribute: str) -> SpecField | None:
    """First in-range match over sources (outer) and pattern rows (inner)."""
    for source in sources:
        if not source.text:
            continue
        for row in patterns:
            for match in row.regex.finditer(source.text):
                value = row.resolve(match)
                if value is None or not _in_range(attribute, value):
                    # Out-of-range hit is a miss; try the next occurrence
                    continue
                return SpecField(
                    value=value,
                    source=source.name,
                    confidence=row.confidence * source.weight,
                    pattern=row.regex.pattern,
                )
    return None


def _default(attribute: str) -> SpecField | None:
    if attribute not in DEFAULTS:
        return None
    value, confidence = DEFAULTS[attribute]
    return SpecField(value=value, source="default", confidence=confidence, pattern="default")


def _extract_scalar(sources: list[Source], patterns: list[Pattern], attribute: str) -> SpecField | None:
    return _match_patterns(sources, patterns, attribute) or _default(attribute)


def extract_resolution(sources: list[Source]) -> SpecField:
    """Video resolution class; defaults to 1080p."""
    return _extract_scalar(sources, RESOLUTION_PATTERNS, "resolution")


def extract_frame_rate(sources: list[Source]) -> SpecField:
    """Frame rate in fps, accepted in (0, 240]; defaults to 30."""
    return _extract_scalar(sources, FPS_PATTERNS, "fps")


def extract_fov(sources: list[Source]) -> SpecField:
    """Field of view in degrees, accepted in (0, 360]; defaults to 140."""
    return _extract_scalar(sources, FOV_PATTERNS, "fov")


def extract_screen_size(sources: list[Source]) -> SpecField | None:
    """Screen diagonal in inches, accepted in (0, 15]. No default."""
    return _extract_scalar(sources, SCREEN_SIZE_PATTERNS, "screenSize")


def extract_screen_type(sources: list[Source]) -> SpecField:
    return _extract_scalar(sources, SCREEN_TYPE_PATTERNS, "screenType")


def extract_channels(sources: list[Source]) -> SpecField:
    """Number of recording channels (front, rear, interior); defaults to 1."""
    return _extract_scalar(sources, CHANNEL_PATTERNS, "channels")


def extract_size_description(sources: list[Source]) -> SpecField | None:
    return _extract_scalar(sources, SIZE_DESCRIPTION_PATTERNS, "sizeDescription")


def extract_wifi_frequency(sources: list[Source]) -> SpecField | None:
    return _extract_scalar(sources, WIFI_FREQUENCY_PATTERNS, "wifiFrequency")


def extract_included_storage(sources: list[Source]) -> SpecField | None:
    """Capacity (GB) of a memory card shipped in the box. No default."""
    return _extract_scalar(sources, INCLUDED_STORAGE_PATTERNS, "includedStorage")


def extract_max_storage(sources: list[Source]) -> SpecField:
    """Largest supported card (GB); defaults to 128."""
    return _extract_scalar(sources, MAX_STORAGE_PATTERNS, "maxStorage")


def extract_model_number(sources: list[Source]) -> SpecField | None:
    return _extract_scalar(sources, MODEL_NUMBER_PATTERNS, "modelNumber")


def extract_operating_temperature(sources: list[Source]) -> SpecField | None:
    return _extract_scalar(sources, OPERATING_TEMPERATURE_PATTERNS, "operatingTemperature")


def extract_power_source(sources: list[Source]) -> SpecField:
    return _extract_scalar(sources, POWER_SOURCE_PATTERNS, "powerSource")


# =====================================================================
# Stage B: Boolean feature flags
# =====================================================================

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")


def _structured_boolean(source: Source, name: str) -> SpecField | None:
    """Read a flag from a vendor key that names the attribute.

    "Night Vision", "night_vision" and "nightVision" all name ``nightVision``.
    """
    wanted = name.lower()
    for key, value in source.fields.items():
        if wanted not in _NON_ALNUM_RE.sub("", str(key).lower()):
            continue
        if isinstance(value, bool):
            return SpecField(
                value=value,
                source=source.name,
                confidence=STRUCTURED_BOOL_CONFIDENCE * source.weight,
                pattern="structured",
            )
        if isinstance(value, str):
            return SpecField(
                value=STRUCTURED_TRUE_RE.search(value) is not None,
                source=source.name,
                confidence=STRUCTURED_STRING_CONFIDENCE * source.weight,
                pattern="structured",
            )
    return None


def extract_boolean(sources: list[Source], name: str, pattern: re.Pattern | None = None) -> SpecField:
    """Presence flag for a feature; never None.

    ``pattern`` overrides the library regex for ``name``.
    """
    regex = pattern or BOOLEAN_PATTERNS[name]

    for source in sources:
        if source.text and regex.search(source.text):
            return SpecField(
                value=True,
                source=source.name,
                confidence=BOOLEAN_CONFIDENCE * source.weight,
                pattern=regex.pattern,
            )

    structured = find_source(sources, "structuredSpecs")
    if structured is not None and structured.fields:
        field = _structured_boolean(structured, name)
        if field is not None:
            return field

    return SpecField(value=False, source="default", confidence=BOOLEAN_DEFAULT_CONFIDENCE, pattern="default")
