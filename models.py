from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Marketplace price key -> purchase URL key
MARKETPLACE_URL_KEYS = {
    "amazon_com": "com",
    "amazon_uk": "uk",
}

# Price value the scraper writes when a marketplace has no offer
PRICE_UNAVAILABLE = -1


class CamelModel(BaseModel):
    """Base for records whose JSON wire names are camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        protected_namespaces=(),
    )


class RawProduct(CamelModel):
    """A scraped (or seeded) listing, before any specification extraction."""

    model_config = ConfigDict(extra="allow")

    id: int | str | None = None
    brand: str = ""
    model: str = ""  # full listing title
    features: list[str] = []
    description: str | None = None
    structured_specs: dict[str, Any] | None = None
    technical_details: dict[str, Any] | None = None
    price: dict[str, float] = {}  # e.g. {"amazon_com": 119.99, "amazon_uk": -1}
    rating: float = 0.0
    review_count: int = 0
    image: str | None = None
    amazon_url: dict[str, str] = {}  # e.g. {"com": "https://www.amazon.com/..."}
    resolution: str | None = None  # scraper-side guess, kept for old documents
    release_date: str | None = None
    popularity: float = 0.0

    def price_for(self, marketplace: str) -> float | None:
        """Price in the given marketplace, or None when there is no offer."""
        value = self.price.get(marketplace)
        if value is None or value == PRICE_UNAVAILABLE:
            return None
        return value

    def url_for(self, marketplace: str) -> str | None:
        return self.amazon_url.get(MARKETPLACE_URL_KEYS.get(marketplace, marketplace)) or None


class SpecField(BaseModel):
    """One extracted attribute value and where it came from."""

    value: Any = None
    source: str  # source name, or "default" for fallbacks
    confidence: float = Field(ge=0.0, le=1.0)
    pattern: str = ""


# ---------------------------------------------------------------------------
# Normalized specification groups
# ---------------------------------------------------------------------------


class VideoSpecs(CamelModel):
    resolution: str | None = None  # one of 4K, 1440p, 1080p, 720p, SD
    fps: int | float | None = None
    hdr: bool = False
    night_vision: bool = False
    wdr: bool = False


class PhysicalSpecs(CamelModel):
    fov: int | float | None = None  # degrees
    screen_size: int | float | None = None  # inches
    screen_type: str | None = None
    channels: int | None = None
    size_description: str | None = None


class ConnectivitySpecs(CamelModel):
    wifi: bool = False
    wifi_frequency: str | None = None
    bluetooth: bool = False
    gps: bool = False
    voice_control: bool = False


class FeatureSpecs(CamelModel):
    parking_mode: bool = False
    motion_detection: bool = False
    loop_recording: bool = False
    emergency_recording: bool = False
    time_lapse: bool = False
    remote_monitoring: bool = False


class StorageSpecs(CamelModel):
    included_storage: int | float | None = None  # GB
    max_storage: int | float | None = None  # GB
    memory_card_included: bool = False


class AdditionalSpecs(CamelModel):
    model_number: str | None = None
    operating_temperature: str | None = None
    power_source: str | None = None


class SpecTree(CamelModel):
    video: VideoSpecs = Field(default_factory=VideoSpecs)
    physical: PhysicalSpecs = Field(default_factory=PhysicalSpecs)
    connectivity: ConnectivitySpecs = Field(default_factory=ConnectivitySpecs)
    features: FeatureSpecs = Field(default_factory=FeatureSpecs)
    storage: StorageSpecs = Field(default_factory=StorageSpecs)
    additional: AdditionalSpecs = Field(default_factory=AdditionalSpecs)


# Group name -> group model, in output order
SPEC_GROUP_MODELS: dict[str, type[CamelModel]] = {
    "video": VideoSpecs,
    "physical": PhysicalSpecs,
    "connectivity": ConnectivitySpecs,
    "features": FeatureSpecs,
    "storage": StorageSpecs,
    "additional": AdditionalSpecs,
}

# Group name -> wire names of its attributes
SPEC_GROUPS: dict[str, tuple[str, ...]] = {
    group: tuple(to_camel(name) for name in model.model_fields)
    for group, model in SPEC_GROUP_MODELS.items()
}


class SourceRecord(CamelModel):
    source: str
    confidence: float
    pattern: str


class ExtractionMetadata(CamelModel):
    processing_timestamp: str  # ISO-8601, UTC
    # group -> attribute -> provenance of the final value
    sources_used: dict[str, dict[str, SourceRecord]] = {}


class NormalizedProduct(RawProduct):
    """A listing with its normalized specification tree attached."""

    specs: SpecTree = Field(default_factory=SpecTree)
    clean_model_name: str = ""
    extraction_metadata: ExtractionMetadata | None = None


# ---------------------------------------------------------------------------
# Filter state (owned by the UI, read-only here)
# ---------------------------------------------------------------------------


class PriceRange(CamelModel):
    min: float | None = None
    max: float | None = None


class FilterState(CamelModel):
    marketplace: str = "amazon_com"
    brand: str = ""
    search_text: str = ""
    price_range: PriceRange = Field(default_factory=PriceRange)
    min_rating: float | None = None
    # "category:property" or "category:property:value" tokens
    selected_specs: list[str] = []
