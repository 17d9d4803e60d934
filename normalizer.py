"""
Canonicalization of extracted specification values.

Every function here is pure and idempotent: canonical outputs are fixed
points, so normalizing an already-normalized tree changes nothing.
"""

import re
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable

from models import SPEC_GROUP_MODELS, SPEC_GROUPS, SpecField, SpecTree

# ----------------------------- lookup tables ----------------------------- #

RESOLUTION_MAP = {
    "4k": "4K",
    "2160p": "4K",
    "2.7k": "1440p",
    "2.5k": "1440p",
    "2k": "1440p",
    "1440p": "1440p",
    "1080p": "1080p",
    "full hd": "1080p",
    "fhd": "1080p",
    "hd": "720p",
    "720p": "720p",
    "sd": "SD",
}

SCREEN_TYPE_MAP = {
    "ips": "IPS",
    "lcd": "LCD",
    "oled": "OLED",
    "amoled": "AMOLED",
    "tft": "TFT",
    "led": "LED",
}

WIFI_FREQUENCY_MAP = {
    "2.4": "2.4GHz",
    "2.4ghz": "2.4GHz",
    "2.4 ghz": "2.4GHz",
    "2.4g": "2.4GHz",
    "5": "5GHz",
    "5ghz": "5GHz",
    "5 ghz": "5GHz",
    "5g": "5GHz",
    "dual": "Dual-band",
    "dual band": "Dual-band",
    "dual-band": "Dual-band",
    "both": "Dual-band",
}

POWER_SOURCE_MAP = {
    "hardwire": "Hardwire",
    "hardwiring": "Hardwire",
    "direct wire": "Hardwire",
    "car charger": "Car Charger",
    "cigarette lighter": "Car Charger",
    "12v": "Car Charger",
    "battery": "Battery",
    "rechargeable": "Battery",
    "capacitor": "Capacitor",
    "supercapacitor": "Capacitor",
    "super capacitor": "Capacitor",
}

FRAME_RATES = (24, 25, 30, 50, 60, 120)
VIEWING_ANGLES = (120, 130, 140, 150, 160, 170, 180)
SNAP_TOLERANCE = 2

VALID_CHANNELS = (1, 2, 3)

TRUTHY_STRINGS = frozenset({"true", "yes", "y", "1", "on", "enabled"})

_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")
# Units are tried in this order, so "32GB-1TB" reads as 1TB
_STORAGE_UNITS = (
    (re.compile(r"(\d+(?:\.\d+)?)\s*TB", re.I), 1024),
    (re.compile(r"(\d+(?:\.\d+)?)\s*GB", re.I), 1),
    (re.compile(r"(\d+(?:\.\d+)?)\s*MB", re.I), 1 / 1024),
)


# ----------------------------- helpers ----------------------------------- #


def _integral(number: float) -> int | float:
    """170.0 -> 170; non-integral values are left alone."""
    if isinstance(number, float) and number.is_integer():
        return int(number)
    return number


def _to_number(value: Any) -> int | float | None:
    """Numeric value of a number or of the first number in a string."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    m = _NUMBER_RE.search(str(value))
    if not m:
        return None
    return _integral(float(m.group(0)))


def _lookup(value: Any, table: dict[str, str]) -> Any:
    """Case-insensitive table lookup; unknown strings pass through unchanged."""
    if value is None:
        return None
    return table.get(str(value).strip().lower(), value)


def _snap(value: Any, constants: tuple[int, ...]) -> int | float | None:
    number = _to_number(value)
    if number is None:
        return None
    nearest = min(constants, key=lambda c: abs(c - number))
    if abs(nearest - number) <= SNAP_TOLERANCE:
        return nearest
    return _integral(number)


# ----------------------------- per-attribute ----------------------------- #


def normalize_resolution(value: Any) -> Any:
    return _lookup(value, RESOLUTION_MAP)


def normalize_frame_rate(value: Any) -> int | float | None:
    """Snap to a standard frame rate within +/-2 fps."""
    return _snap(value, FRAME_RATES)


def normalize_angle(value: Any) -> int | float | None:
    """Snap a field of view to the nearest 10 degrees in 120..180, within +/-2."""
    return _snap(value, VIEWING_ANGLES)


def normalize_boolean(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in TRUTHY_STRINGS
    return False


def normalize_screen_size(value: Any) -> int | float | None:
    number = _to_number(value)
    if number is None:
        return None
    # Halves round up: 2.25 -> 2.3
    rounded = Decimal(str(number)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    return _integral(float(rounded))


def normalize_screen_type(value: Any) -> Any:
    return _lookup(value, SCREEN_TYPE_MAP)


def normalize_channels(value: Any) -> int | None:
    """Channel count restricted to 1-3; anything else collapses to 1."""
    number = _to_number(value)
    if number is None:
        return None if value is None else 1
    if number in VALID_CHANNELS:
        return int(number)
    return 1


def normalize_wifi_frequency(value: Any) -> Any:
    return _lookup(value, WIFI_FREQUENCY_MAP)


def normalize_storage(value: Any) -> int | float | None:
    """Capacity in GB from a number or a string such as "1TB" or "500MB".

    Bare numbers in strings are taken as GB when in 1..1024.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return _integral(value)

    text = str(value)
    for unit_re, factor in _STORAGE_UNITS:
        m = unit_re.search(text)
        if m:
            return _integral(float(m.group(1)) * factor)

    m = _NUMBER_RE.search(text)
    if m:
        amount = float(m.group(0))
        if 1 <= amount <= 1024:
            return _integral(amount)
    return None


def normalize_model_number(value: Any) -> str | None:
    if value is None:
        return None
    return str(value).strip() or None


def normalize_power_source(value: Any) -> Any:
    return _lookup(value, POWER_SOURCE_MAP)


def _passthrough(value: Any) -> Any:
    return value


# Attribute wire name -> canonicalizer. Flags not listed here go through
# normalize_boolean.
NORMALIZERS: dict[str, Callable[[Any], Any]] = {
    "resolution": normalize_resolution,
    "fps": normalize_frame_rate,
    "fov": normalize_angle,
    "screenSize": normalize_screen_size,
    "screenType": normalize_screen_type,
    "channels": normalize_channels,
    "sizeDescription": _passthrough,
    "wifiFrequency": normalize_wifi_frequency,
    "includedStorage": normalize_storage,
    "maxStorage": normalize_storage,
    "modelNumber": normalize_model_number,
    "operatingTemperature": _passthrough,
    "powerSource": normalize_power_source,
}


# ----------------------------- tree level -------------------------------- #


def _unwrap(field: Any) -> Any:
    if isinstance(field, SpecField):
        return field.value
    if isinstance(field, dict) and "source" in field and "confidence" in field:
        return field.get("value")
    return field


def normalize_specs(specs: dict[str, dict[str, Any]] | SpecTree) -> SpecTree:
    """Unwrap every SpecField and canonicalize it.

    Accepts the extractor's tree of SpecFields, a plain tree of scalars, or an
    already normalized SpecTree. Missing groups or attributes come out as
    null, and flags as False.
    """
    if isinstance(specs, SpecTree):
        specs = specs.model_dump(by_alias=True)

    groups: dict[str, Any] = {}
    for group, attributes in SPEC_GROUPS.items():
        raw_group = specs.get(group) or {}
        values: dict[str, Any] = {}
        for attribute in attributes:
            value = _unwrap(raw_group.get(attribute))
            normalize = NORMALIZERS.get(attribute, normalize_boolean)
            values[attribute] = normalize(value)
        groups[group] = SPEC_GROUP_MODELS[group].model_validate(values)

    return SpecTree(**groups)
