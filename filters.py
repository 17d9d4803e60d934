"""
Filter/sort engine over the normalized product collection.

Simple filters live in a declarative registry: each entry names the UI
control that drives it and a predicate ``(product, value, state) -> bool``.
A product survives only if every active filter and every selected
specification token accepts it. Nothing here mutates its inputs.
"""

from dataclasses import dataclass
from typing import Any, Callable

from pydantic.alias_generators import to_snake

from models import SPEC_GROUPS, FilterState, PriceRange, RawProduct

Predicate = Callable[[RawProduct, Any, FilterState], bool]
SpecPredicate = Callable[[RawProduct], bool]

SORT_OPTIONS = ("price-low", "price-high", "rating", "newest", "popularity")
DEFAULT_SORT = "popularity"


@dataclass(frozen=True)
class FilterDefinition:
    type: str  # radio, select, text, range
    predicate: Predicate


# ---------------------------------------------------------------------------
# Registry predicates
# ---------------------------------------------------------------------------


def _marketplace_matches(product: RawProduct, marketplace: str, state: FilterState) -> bool:
    """Listed in the marketplace: a real price and a purchase URL."""
    return product.price_for(marketplace) is not None and product.url_for(marketplace) is not None


def _brand_matches(product: RawProduct, brand: str, state: FilterState) -> bool:
    return product.brand == brand


def _spec_groups(product: RawProduct) -> dict[str, dict[str, Any]]:
    specs = getattr(product, "specs", None)
    if specs is None:
        return {}
    return specs.model_dump(by_alias=True)


def _search_matches(product: RawProduct, text: str, state: FilterState) -> bool:
    """Case-insensitive substring search over the product's text fields.

    Looks at brand, model, features, spec string values and spec key names,
    and the raw resolution.
    """
    term = text.lower()
    if term in product.model.lower() or term in product.brand.lower():
        return True
    if any(term in feature.lower() for feature in product.features):
        return True

    for group in _spec_groups(product).values():
        for key, value in group.items():
            if isinstance(value, str) and term in value.lower():
                return True
            if term in key.lower():
                return True

    return bool(product.resolution) and term in product.resolution.lower()


def _price_in_range(product: RawProduct, price_range: PriceRange, state: FilterState) -> bool:
    price = product.price_for(state.marketplace)
    if price is None:
        return False
    if price_range.min is not None and price < price_range.min:
        return False
    if price_range.max is not None and price > price_range.max:
        return False
    return True


def _rating_at_least(product: RawProduct, min_rating: float, state: FilterState) -> bool:
    return product.rating >= min_rating


# State attribute -> filter definition
FILTER_REGISTRY: dict[str, FilterDefinition] = {
    "marketplace": FilterDefinition("radio", _marketplace_matches),
    "brand": FilterDefinition("select", _brand_matches),
    "search_text": FilterDefinition("text", _search_matches),
    "price_range": FilterDefinition("range", _price_in_range),
    "min_rating": FilterDefinition("select", _rating_at_least),
}


def _is_active(value: Any) -> bool:
    if value is None or value == "":
        return False
    if isinstance(value, PriceRange):
        return value.min is not None or value.max is not None
    return True


# ---------------------------------------------------------------------------
# Specification tokens
# ---------------------------------------------------------------------------


def _never(product: RawProduct) -> bool:
    return False


def _parse_number(text: str) -> float | None:
    try:
        return float(text)
    except ValueError:
        return None


def create_spec_filter(token: str) -> SpecPredicate:
    """Build a predicate from a ``category:property[:value]`` token.

    - ``connectivity:wifi``      property is truthy
    - ``physical:fov:150``       numeric property >= 150
    - ``physical:screenType:ips`` case-insensitive equality
    - ``resolution:4K``          normalized (or raw) resolution equals 4K
    """
    category, _, rest = token.partition(":")
    prop, _, expected = rest.partition(":")

    if category == "resolution":
        def resolution_equals(product: RawProduct) -> bool:
            resolution = _spec_groups(product).get("video", {}).get("resolution")
            return resolution == prop or product.resolution == prop

        return resolution_equals

    if category not in SPEC_GROUPS or not prop:
        return _never

    attribute = to_snake(prop)

    def lookup(product: RawProduct) -> Any:
        specs = getattr(product, "specs", None)
        if specs is None:
            return None
        return getattr(getattr(specs, category), attribute, None)

    if not expected:
        return lambda product: bool(lookup(product))

    threshold = _parse_number(expected)
    if threshold is not None:
        def at_least(product: RawProduct) -> bool:
            actual = lookup(product)
            if isinstance(actual, bool) or not isinstance(actual, (int, float)):
                return False
            return actual >= threshold

        return at_least

    wanted = expected.lower()

    def equals(product: RawProduct) -> bool:
        actual = lookup(product)
        return actual is not None and str(actual).lower() == wanted

    return equals


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def apply_filters(products: list[RawProduct], state: FilterState) -> list[RawProduct]:
    """Products that pass every active filter and every selected spec token."""
    active = [
        (definition, getattr(state, name))
        for name, definition in FILTER_REGISTRY.items()
        if _is_active(getattr(state, name))
    ]
    spec_filters = [create_spec_filter(token) for token in state.selected_specs]

    return [
        product
        for product in products
        if all(d.predicate(product, value, state) for d, value in active)
        and all(check(product) for check in spec_filters)
    ]


def sort_products(
    products: list[RawProduct],
    sort_by: str = DEFAULT_SORT,
    marketplace: str = "amazon_com",
) -> list[RawProduct]:
    """Return a new list ordered by ``sort_by``; unknown keys sort by popularity.

    Unpriced products go after priced ones when sorting by price.
    """
    if sort_by in ("price-low", "price-high"):
        priced = [p for p in products if p.price_for(marketplace) is not None]
        unpriced = [p for p in products if p.price_for(marketplace) is None]
        priced.sort(key=lambda p: p.price_for(marketplace), reverse=sort_by == "price-high")
        return priced + unpriced
    if sort_by == "rating":
        return sorted(products, key=lambda p: p.rating, reverse=True)
    if sort_by == "newest":
        return sorted(products, key=lambda p: p.release_date or "", reverse=True)
    return sorted(products, key=lambda p: p.popularity, reverse=True)


def get_brands(products: list[RawProduct]) -> list[str]:
    return sorted({p.brand for p in products if p.brand})


def get_resolutions(products: list[RawProduct]) -> list[str]:
    resolutions = set()
    for product in products:
        resolution = _spec_groups(product).get("video", {}).get("resolution") or product.resolution
        if resolution:
            resolutions.add(resolution)
    return sorted(resolutions)
