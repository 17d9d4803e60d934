"""
Dash cam pattern library.

Declarative tables of (regex, value-or-converter, base confidence) per
specification attribute. Tables are ordered: within one source, the first
matching row wins. No extraction logic lives here.
"""

import re
from dataclasses import dataclass
from typing import Any, Callable

# Highest priority in the source list; confidences are scaled by priority / this
MAX_SOURCE_PRIORITY = 3


@dataclass(frozen=True)
class Pattern:
    """One row of a pattern table.

    Either ``value`` is returned on a match, or ``convert`` derives the value
    from the match object (returning None rejects the match).
    """

    regex: re.Pattern
    confidence: float
    value: Any = None
    convert: Callable[[re.Match], Any] | None = None

    def resolve(self, match: re.Match) -> Any:
        if self.convert is not None:
            return self.convert(match)
        return self.value


def _rx(pattern: str) -> re.Pattern:
    return re.compile(pattern, re.IGNORECASE)


def _int_group(match: re.Match) -> int:
    return int(match.group(1))


def _float_group(match: re.Match) -> float:
    return float(match.group(1))


def _storage_gb(match: re.Match) -> int:
    amount = int(match.group(1))
    unit = (match.group(2) or "GB").upper()
    return amount * 1024 if unit == "TB" else amount


def _temperature_range(match: re.Match) -> str:
    low, high = int(match.group(1)), int(match.group(2))
    return f"{low}°C to {high}°C"


# ---------------------------------------------------------------------------
# Scalar attribute tables
# ---------------------------------------------------------------------------

RESOLUTION_PATTERNS = [
    Pattern(_rx(r"4K|2160p|3840\s*[x*]\s*2160"), 0.9, value="4K"),
    Pattern(_rx(r"2\.[57]K|1440p|2560\s*[x*]\s*1440"), 0.9, value="1440p"),
    Pattern(_rx(r"1080p|1920\s*[x*]\s*1080|Full\s*HD|\bFHD\b"), 0.9, value="1080p"),
    Pattern(_rx(r"720p|1280\s*[x*]\s*720|\bHD\b"), 0.9, value="720p"),
]

FPS_PATTERNS = [
    Pattern(_rx(r"(\d+)\s*fps"), 0.9, convert=_int_group),
    Pattern(_rx(r"(\d+)\s*frames?\s*per\s*second"), 0.9, convert=_int_group),
    Pattern(_rx(r"(\d+)\s*hz\s*recording"), 0.8, convert=_int_group),
]

FOV_PATTERNS = [
    Pattern(_rx(r"(\d+)[\s-]*degrees?(?:\s*FOV)?"), 0.9, convert=_int_group),
    Pattern(_rx(r"FOV[\s:]*(\d+)[\s-]*degrees?"), 0.9, convert=_int_group),
    # "Â°" is the mis-decoded degree sign common in scraped titles
    Pattern(_rx(r"(\d+)\s*Â?°(?:\s*wide)?(?:\s*angle)?"), 0.85, convert=_int_group),
    Pattern(_rx(r"wide\s*angle[\s:]*(\d+)[\s-]*degrees?"), 0.8, convert=_int_group),
]

SCREEN_SIZE_PATTERNS = [
    Pattern(_rx(r"(\d+(?:\.\d+)?)[\"”″\s-]*inch(?:es)?(?:\s*screen|\s*display)?"), 0.9, convert=_float_group),
    Pattern(_rx(r"(?:screen|display)[\s:]*(\d+(?:\.\d+)?)[\"”″\s-]*inch(?:es)?"), 0.9, convert=_float_group),
    Pattern(_rx(r"(\d+(?:\.\d+)?)[\"”″](?:\s*screen|\s*display)?"), 0.85, convert=_float_group),
]

SCREEN_TYPE_PATTERNS = [
    Pattern(_rx(r"IPS\s*(?:screen|display)"), 0.9, value="IPS"),
    Pattern(_rx(r"LCD\s*(?:screen|display)"), 0.9, value="LCD"),
    Pattern(_rx(r"OLED\s*(?:screen|display)"), 0.9, value="OLED"),
    Pattern(_rx(r"TFT\s*(?:screen|display)"), 0.9, value="TFT"),
    Pattern(_rx(r"LED\s*(?:screen|display)"), 0.85, value="LED"),
]

# Three-channel rows come first: "front rear interior" also reads as front+rear
CHANNEL_PATTERNS = [
    Pattern(_rx(r"\b3\s*-?\s*ch(?:annels?)?\b"), 0.9, value=3),
    Pattern(_rx(r"front\s*[,&+]?\s*(?:and\s*)?rear\s*[,&+]?\s*(?:and\s*)?(?:interior|inside|cabin)"), 0.9, value=3),
    Pattern(_rx(r"triple\s*camera"), 0.9, value=3),
    Pattern(_rx(r"\b2\s*-?\s*ch(?:annels?)?\b"), 0.9, value=2),
    Pattern(_rx(r"dual\s*(?:dash\s*)?cam(?:era)?"), 0.9, value=2),
    Pattern(_rx(r"front\s*(?:and|&|\+)?\s*rear"), 0.9, value=2),
    Pattern(_rx(r"single\s*camera"), 0.9, value=1),
    Pattern(_rx(r"front\s*only"), 0.85, value=1),
]

SIZE_DESCRIPTION_PATTERNS = [
    Pattern(_rx(r"\b(?:compact|mini|small)\b"), 0.8, value="Compact"),
    Pattern(_rx(r"\bdiscreet\b"), 0.8, value="Discreet"),
    Pattern(_rx(r"low\s*profile"), 0.8, value="Low Profile"),
]

WIFI_FREQUENCY_PATTERNS = [
    Pattern(_rx(r"dual[\s-]*band\s*Wi-?Fi"), 0.9, value="Dual Band"),
    Pattern(_rx(r"(?<![\d.])5\s*GHz|(?<![\d.])5G\s*Wi-?Fi"), 0.9, value="5GHz"),
    Pattern(_rx(r"2\.4\s*GHz|2\.4G\s*Wi-?Fi"), 0.9, value="2.4GHz"),
]

INCLUDED_STORAGE_PATTERNS = [
    Pattern(_rx(r"includ(?:es?|ed|ing)\s*(?:an?\s*)?(\d+)\s*(GB|TB)\s*(?:micro\s*)?(?:SD|TF|memory)?\s*card"), 0.9, convert=_storage_gb),
    Pattern(_rx(r"(\d+)\s*(GB|TB)\s*(?:micro\s*)?(?:SD|TF|memory)\s*card\s*included"), 0.9, convert=_storage_gb),
    Pattern(_rx(r"comes?\s*with\s*(?:an?\s*)?(\d+)\s*(GB|TB)\s*(?:micro\s*)?(?:SD|TF|memory)?\s*card"), 0.9, convert=_storage_gb),
]

MAX_STORAGE_PATTERNS = [
    Pattern(_rx(r"support(?:s|ing)?\s*(?:up\s*to\s*)?(\d+)\s*(GB|TB)"), 0.9, convert=_storage_gb),
    Pattern(_rx(r"max(?:imum)?\s*(?:of\s*)?(\d+)\s*(GB|TB)"), 0.9, convert=_storage_gb),
    Pattern(_rx(r"up\s*to\s*(\d+)\s*(GB|TB)\s*(?:micro\s*)?(?:SD|TF|memory)?\s*card"), 0.9, convert=_storage_gb),
]

# Model numbers trail the title, e.g. "... Dash Cam 010-02505-00"
MODEL_NUMBER_PATTERNS = [
    Pattern(re.compile(r"[-\s](\d+[-\d]+(?:[-\w]+)?)\s*$"), 0.7, convert=lambda m: m.group(1)),
]

OPERATING_TEMPERATURE_PATTERNS = [
    Pattern(
        _rx(r"operating\s*temperature\s*(?:range)?[\s:]*(-?\d+)\s*(?:°\s*[CF])?(?:\s*to\s*|\s*[-~]\s*)(-?\d+)\s*°?\s*[CF]\b"),
        0.9,
        convert=_temperature_range,
    ),
    Pattern(
        _rx(r"temperature\s*range[\s:]*(-?\d+)\s*(?:°\s*[CF])?(?:\s*to\s*|\s*[-~]\s*)(-?\d+)\s*°?\s*[CF]\b"),
        0.8,
        convert=_temperature_range,
    ),
]

# Capacitor before battery: listings often say "supercapacitor instead of a battery"
POWER_SOURCE_PATTERNS = [
    Pattern(_rx(r"hardwir(?:e|ed|ing)|direct\s*wire"), 0.9, value="Hardwire"),
    Pattern(_rx(r"car\s*charger|cigarette\s*lighter|\b12\s*v\b"), 0.9, value="Car Charger"),
    Pattern(_rx(r"super\s*capacitor|capacitor"), 0.9, value="Capacitor"),
    Pattern(_rx(r"battery|rechargeable"), 0.9, value="Battery"),
]

# ---------------------------------------------------------------------------
# Boolean feature flags (attribute wire name -> regex)
# ---------------------------------------------------------------------------

BOOLEAN_PATTERNS: dict[str, re.Pattern] = {
    "hdr": _rx(r"\bHDR\b|High\s*Dynamic\s*Range"),
    "nightVision": _rx(r"night\s*vision|starvis|starlight|low\s*light"),
    "wdr": _rx(r"\bWDR\b|Wide\s*Dynamic\s*Range"),
    "wifi": _rx(r"WiFi|Wi-Fi|Wireless|connect\s*to\s*(?:your\s*)?smartphone"),
    "bluetooth": _rx(r"Bluetooth|\bBT\d"),
    "gps": _rx(r"\bGPS|Global\s*Positioning"),
    "voiceControl": _rx(r"voice\s*control|voice\s*command|voice\s*activated"),
    "parkingMode": _rx(r"parking\s*mode|parking\s*monitor"),
    "motionDetection": _rx(r"motion\s*detect|motion\s*sensor"),
    "loopRecording": _rx(r"loop\s*record(?:ing)?|seamless\s*recording"),
    "emergencyRecording": _rx(r"emergency\s*record(?:ing)?|g[-\s]?sensor|collision\s*detection"),
    "timeLapse": _rx(r"time[\s-]*lapse"),
    "remoteMonitoring": _rx(r"monitor\s*your\s*vehicle\s*while\s*away|remote\s*monitoring|remote\s*view"),
    "memoryCardIncluded": _rx(
        r"includ(?:es?|ed|ing)\s*(?:an?\s*)?(?:\d+\s*[GT]B\s*)?(?:micro\s*)?(?:SD|TF|memory)?\s*card"
        r"|(?:memory|SD|TF)\s*card\s*included"
    ),
}

BOOLEAN_CONFIDENCE = 0.8

# Structured vendor values read as "true"
STRUCTURED_TRUE_RE = _rx(r"yes|true|supported|1")
STRUCTURED_BOOL_CONFIDENCE = 0.9
STRUCTURED_STRING_CONFIDENCE = 0.85

# ---------------------------------------------------------------------------
# Fallbacks and sanity ranges
# ---------------------------------------------------------------------------

# Attribute -> (default value, confidence). Attributes absent here default to null.
DEFAULTS: dict[str, tuple[Any, float]] = {
    "resolution": ("1080p", 0.3),
    "fps": (30, 0.3),
    "fov": (140, 0.3),
    "screenType": ("LCD", 0.4),
    "channels": (1, 0.5),
    "maxStorage": (128, 0.3),
    "powerSource": ("Car Charger", 0.5),
}

BOOLEAN_DEFAULT_CONFIDENCE = 0.5

# Attribute -> (exclusive lower bound, inclusive upper bound or None)
VALUE_RANGES: dict[str, tuple[float, float | None]] = {
    "fps": (0, 240),
    "fov": (0, 360),
    "screenSize": (0, 15),
    "includedStorage": (0, None),
    "maxStorage": (0, None),
}

# Titles that mean the scraper landed on a dead listing
ERROR_PAGE_RE = _rx(r"page\s*not\s*found|\berror\b|not\s*available|not\s*exist")
