"""
Amazon listing scraper backed by the Oxylabs E-Commerce Scraper API.

Fetches search and product pages through the realtime endpoint, maps the
parsed product payload onto RawProduct, merges listings seen in several
marketplaces, and writes the raw collection the processor consumes.
Requests are strictly sequential with a fixed pause between them.
"""

import asyncio
import json
import logging
import re
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Any

import httpx
from bs4 import BeautifulSoup

from config import (
    MAX_FEATURES,
    OPERATION_TIMEOUT,
    OXYLABS_ENDPOINT,
    OXYLABS_PASSWORD,
    OXYLABS_USERNAME,
    PRODUCT_URLS,
    RAW_PRODUCTS_FILE,
    REQUEST_DELAY,
    REQUEST_TIMEOUT,
    SEARCH_URLS,
)
from extractor import is_error_page
from models import PRICE_UNAVAILABLE, RawProduct
from patterns import RESOLUTION_PATTERNS

logger = logging.getLogger(__name__)

_ASIN_PATH_RE = re.compile(r"/dp/([A-Z0-9]{10})")
_NUMBER_RE = re.compile(r"[\d,.]+")
_BOILERPLATE_RE = re.compile(r"dash\s*cam|dashboard\s*camera|car\s*camera", re.IGNORECASE)
_DATE_FORMATS = ("%B %d, %Y", "%d %B %Y", "%b %d, %Y", "%d %b %Y")


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------


def marketplace_for(url: str) -> str:
    return "amazon_uk" if "amazon.co.uk" in url else "amazon_com"


def create_client(transport: httpx.AsyncBaseTransport | None = None) -> httpx.AsyncClient:
    """Client preconfigured with API credentials and the long render timeout."""
    return httpx.AsyncClient(
        auth=(OXYLABS_USERNAME, OXYLABS_PASSWORD),
        timeout=REQUEST_TIMEOUT,
        transport=transport,
    )


async def scrape_amazon_url(client: httpx.AsyncClient, url: str) -> dict[str, Any]:
    """Ask the API to render and parse one Amazon page; returns the JSON body."""
    # Postcodes pin the storefront: London for .co.uk, New York otherwise
    geo_location = "SW1A 1AA" if "amazon.co.uk" in url else "10001"
    payload = {
        "source": "amazon",
        "url": url,
        "geo_location": geo_location,
        "render": "html",
        "parse": True,
    }
    resp = await client.post(OXYLABS_ENDPOINT, json=payload)
    resp.raise_for_status()
    return resp.json()


# ---------------------------------------------------------------------------
# Payload parsing
# ---------------------------------------------------------------------------


def _content(payload: dict[str, Any]) -> dict[str, Any] | None:
    results = payload.get("results") or []
    if not results or not isinstance(results[0], dict):
        return None
    content = results[0].get("content")
    return content if isinstance(content, dict) else None


def extract_product_urls_from_search(payload: dict[str, Any]) -> list[str]:
    """Product (/dp/) URLs listed on a parsed search results page."""
    content = _content(payload)
    if content is None:
        logger.error("No search results found in the response")
        return []

    for key in ("results", "organic_results", "search_results"):
        items = content.get(key)
        if isinstance(items, list):
            return [item["url"] for item in items if isinstance(item, dict) and "/dp/" in item.get("url", "")]

    # Unparsed page: fall back to ASINs found in the raw markup
    raw = content.get("results")
    if isinstance(raw, str):
        domain = "amazon.co.uk" if "amazon.co.uk" in content.get("url", "") else "amazon.com"
        asins = dict.fromkeys(_ASIN_PATH_RE.findall(raw))
        return [f"https://www.{domain}/dp/{asin}" for asin in asins]

    logger.error(f"Unknown search results format: {sorted(content)}")
    return []


def _find_product(content: dict[str, Any]) -> dict[str, Any] | None:
    if isinstance(content.get("product"), dict):
        return content["product"]
    if content.get("title") and content.get("asin"):
        return content
    products = content.get("products")
    if isinstance(products, list) and products:
        return products[0]
    result = content.get("result")
    if isinstance(result, dict) and isinstance(result.get("product"), dict):
        return result["product"]
    for value in content.values():
        if isinstance(value, dict) and (value.get("title") or value.get("name")):
            return value
    return None


def _to_float(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    m = _NUMBER_RE.search(str(value))
    if not m:
        return None
    try:
        return float(m.group(0).replace(",", ""))
    except ValueError:
        return None


def clean_description(html: str) -> str:
    """Visible text of an HTML description, one block per line."""
    soup = BeautifulSoup(html, "lxml")
    for el in soup.find_all(("script", "style")):
        el.decompose()
    return soup.get_text(separator="\n", strip=True)


def _brand_and_model(product: dict[str, Any]) -> tuple[str, str]:
    seller = product.get("seller")
    brand = (
        product.get("brand")
        or product.get("manufacturer")
        or (seller.get("name") if isinstance(seller, dict) else None)
        or ""
    )
    title = product.get("title") or product.get("name") or ""
    if not title:
        return brand, ""
    if not brand:
        words = title.split()
        if len(words) < 2:
            return "", title
        brand = words[0]
    model = title.replace(brand, "", 1).strip()
    return brand, re.sub(r"\s{2,}", " ", _BOILERPLATE_RE.sub("", model)).strip()


def _features(product: dict[str, Any], description: str | None) -> list[str]:
    for key in ("feature_bullets", "features", "bullet_points"):
        items = product.get(key)
        if isinstance(items, list) and items:
            return [str(item).strip() for item in items if str(item).strip()][:MAX_FEATURES]
    if description:
        lines = [line.strip() for line in description.split("\n")]
        return [line for line in lines if len(line) > 10 and "http" not in line][:MAX_FEATURES]
    return []


def _price(product: dict[str, Any]) -> float:
    pricing = product.get("pricing")
    price_info = product.get("price_info")
    candidates = (
        pricing.get("current_price") if isinstance(pricing, dict) else None,
        product.get("price"),
        product.get("current_price"),
        price_info.get("current_price") if isinstance(price_info, dict) else None,
    )
    for candidate in candidates:
        price = _to_float(candidate)
        if price is not None:
            return price
    return PRICE_UNAVAILABLE


def _image(product: dict[str, Any]) -> str | None:
    images = product.get("images")
    if isinstance(images, list) and images:
        first = images[0]
        return first.get("url") if isinstance(first, dict) else str(first)
    for key in ("main_image", "image", "image_url", "primary_image"):
        if isinstance(product.get(key), str):
            return product[key]
    urls = product.get("image_urls")
    if isinstance(urls, list) and urls:
        return urls[0]
    return None


def _rating(product: dict[str, Any]) -> float:
    reviews = product.get("reviews")
    for candidate in (
        product.get("rating"),
        reviews.get("rating") if isinstance(reviews, dict) else None,
        product.get("average_rating"),
        product.get("stars"),
    ):
        rating = _to_float(candidate)
        if rating is not None:
            return rating
    return 0.0


def _review_count(product: dict[str, Any]) -> int:
    reviews = product.get("reviews")
    for candidate in (
        product.get("ratings_total"),
        product.get("review_count"),
        reviews.get("count") if isinstance(reviews, dict) else None,
        product.get("reviews_count"),
        product.get("reviews_total"),
    ):
        count = _to_float(candidate)
        if count is not None:
            return int(count)
    return 0


def guess_resolution(title: str, features: list[str]) -> str:
    """Listing-level resolution guess from the title, then the bullets."""
    for text in (title, *features):
        for row in RESOLUTION_PATTERNS:
            if row.regex.search(text):
                return row.value
    return "1080p"


def _technical_details(product: dict[str, Any]) -> dict[str, Any] | None:
    overview = product.get("product_overview")
    if not isinstance(overview, list):
        return None
    details = {
        item["title"]: item.get("description")
        for item in overview
        if isinstance(item, dict) and item.get("title")
    }
    return details or None


def estimate_release_date(product: dict[str, Any]) -> str:
    """ISO date from the listing, else a year before today."""
    for key in ("release_date", "first_available"):
        raw = product.get(key)
        if not raw:
            continue
        raw = str(raw).strip()
        try:
            return datetime.fromisoformat(raw).date().isoformat()
        except ValueError:
            pass
        for fmt in _DATE_FORMATS:
            try:
                return datetime.strptime(raw, fmt).date().isoformat()
            except ValueError:
                continue
    return (date.today() - timedelta(days=365)).isoformat()


def _string_hash(text: str) -> int:
    # 32-bit rolling hash; Python's hash() is salted per process
    h = 0
    for ch in text:
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    if h >= 2**31:
        h -= 2**32
    return h


def generate_product_id(asin: str, brand: str, model: str) -> int:
    return abs(_string_hash(asin or f"{brand}{model}")) % 10000


def calculate_popularity(rating: float, review_count: int) -> int:
    """0-100 score: half from the star rating, half from review volume (capped at 10k)."""
    rating_score = rating / 5 * 50
    review_score = min(review_count, 10000) / 10000 * 50
    return round(rating_score + review_score)


def extract_product_details(payload: dict[str, Any], marketplace: str) -> RawProduct | None:
    """Map a parsed product page onto a RawProduct, or None if none is found."""
    content = _content(payload)
    if content is None:
        logger.error("No product data found in the response")
        return None
    product = _find_product(content)
    if product is None:
        logger.error(f"Unknown product data format: {sorted(content)}")
        return None

    title = product.get("title") or product.get("name") or ""
    if is_error_page(title):
        logger.warning(f"Skipping error page: {title[:80]!r}")
        return None
    brand, model = _brand_and_model(product)

    description = product.get("description")
    if isinstance(description, str) and description.strip():
        description = clean_description(description)
    else:
        description = None

    features = _features(product, description)
    rating = _rating(product)
    review_count = _review_count(product)
    structured = product.get("product_details")

    results = payload["results"][0]
    url = product.get("url") or product.get("link") or results.get("url") or ""

    return RawProduct(
        id=generate_product_id(product.get("asin") or "", brand, model),
        brand=brand,
        model=model,
        features=features,
        description=description,
        structured_specs=structured if isinstance(structured, dict) and structured else None,
        technical_details=_technical_details(product),
        price={marketplace: _price(product)},
        rating=rating,
        review_count=review_count,
        image=_image(product),
        amazon_url={"uk" if marketplace == "amazon_uk" else "com": url},
        resolution=guess_resolution(title, features),
        release_date=estimate_release_date(product),
        popularity=calculate_popularity(rating, review_count),
    )


# ---------------------------------------------------------------------------
# Collection
# ---------------------------------------------------------------------------


def merge_product_data(products: list[RawProduct]) -> list[RawProduct]:
    """Collapse listings with the same id, combining their marketplace data."""
    merged: dict[Any, RawProduct] = {}
    for product in products:
        existing = merged.get(product.id)
        if existing is None:
            merged[product.id] = product
            continue

        rating = max(existing.rating, product.rating)
        review_count = max(existing.review_count, product.review_count)
        features = product.features if len(product.features) > len(existing.features) else existing.features
        merged[product.id] = existing.model_copy(
            update={
                "price": {**existing.price, **product.price},
                "amazon_url": {**existing.amazon_url, **product.amazon_url},
                "rating": rating,
                "review_count": review_count,
                "features": features,
                "popularity": calculate_popularity(rating, review_count),
            }
        )
    return list(merged.values())


async def scrape_search_results(client: httpx.AsyncClient, search_urls: list[str] = SEARCH_URLS) -> list[str]:
    """Unique product URLs across all search pages."""
    urls: list[str] = []
    for i, search_url in enumerate(search_urls):
        if i:
            await asyncio.sleep(REQUEST_DELAY)
        logger.info(f"Scraping search results from {search_url}")
        try:
            found = extract_product_urls_from_search(await scrape_amazon_url(client, search_url))
        except (httpx.HTTPError, ValueError, KeyError) as e:
            logger.error(f"Search scrape failed for {search_url}: {e}")
            continue
        logger.info(f"  Found {len(found)} product URLs")
        urls.extend(found)
    return list(dict.fromkeys(urls))


async def scrape_product_urls(client: httpx.AsyncClient, urls: list[str]) -> list[RawProduct]:
    """Scrape product pages one at a time; failures are logged and skipped."""
    products: list[RawProduct] = []
    for i, url in enumerate(dict.fromkeys(urls)):
        if i:
            await asyncio.sleep(REQUEST_DELAY)
        logger.info(f"Scraping product data from {url}")
        try:
            payload = await scrape_amazon_url(client, url)
            product = extract_product_details(payload, marketplace_for(url))
        except (httpx.HTTPError, ValueError, KeyError) as e:
            logger.error(f"Product scrape failed for {url}: {e}")
            continue
        if product is not None:
            logger.info(f"  Scraped {product.brand} {product.model[:60]}")
            products.append(product)
    return products


def save_raw_products(products: list[RawProduct], path: Path = RAW_PRODUCTS_FILE) -> None:
    """Write the collection sorted by popularity, most popular first."""
    ordered = sorted(products, key=lambda p: p.popularity, reverse=True)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps([p.model_dump(by_alias=True) for p in ordered], indent=2, ensure_ascii=False))
    logger.info(f"Saved {len(ordered)} products to {path}")


async def download_products(
    include_search: bool = False,
    output: Path = RAW_PRODUCTS_FILE,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[RawProduct]:
    """Scrape the configured listings and write the raw collection.

    The whole run is bounded by OPERATION_TIMEOUT; on timeout an empty
    collection is written.
    """

    async def _run() -> list[RawProduct]:
        async with create_client(transport) as client:
            urls = list(PRODUCT_URLS)
            if include_search:
                urls = await scrape_search_results(client) + urls
            return await scrape_product_urls(client, urls)

    try:
        products = merge_product_data(await asyncio.wait_for(_run(), timeout=OPERATION_TIMEOUT))
    except asyncio.TimeoutError:
        logger.error(f"Download timed out after {OPERATION_TIMEOUT}s")
        products = []

    save_raw_products(products, output)
    return products


if __name__ == "__main__":
    import sys

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    asyncio.run(download_products(include_search="--search" in sys.argv))
