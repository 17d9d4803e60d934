"""
FastAPI server for the dash cam catalog.

Loads products.json at startup into memory and serves:
- GET /api/products              → filtered, sorted slim product cards
- GET /api/products/{product_id} → full normalized product
- GET /api/brands, /api/resolutions → selector values
"""

import logging
from contextlib import asynccontextmanager

import orjson
from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import ORJSONResponse

from config import CORS_ORIGINS, PRODUCTS_FILE
from filters import DEFAULT_SORT, apply_filters, get_brands, get_resolutions, sort_products
from models import CamelModel, FilterState, NormalizedProduct, PriceRange

logger = logging.getLogger("server")

# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class ProductCard(CamelModel):
    """Slim payload for catalog grid cards."""

    id: int | str | None
    brand: str
    clean_model_name: str
    model: str
    price: float | None
    url: str | None
    image: str | None
    rating: float
    review_count: int
    resolution: str | None
    fov: int | float | None
    channels: int | None
    wifi: bool
    gps: bool
    parking_mode: bool


def _to_card(product: NormalizedProduct, marketplace: str) -> ProductCard:
    specs = product.specs
    return ProductCard(
        id=product.id,
        brand=product.brand,
        clean_model_name=product.clean_model_name or product.model,
        model=product.model,
        price=product.price_for(marketplace),
        url=product.url_for(marketplace),
        image=product.image,
        rating=product.rating,
        review_count=product.review_count,
        resolution=specs.video.resolution or product.resolution,
        fov=specs.physical.fov,
        channels=specs.physical.channels,
        wifi=specs.connectivity.wifi,
        gps=specs.connectivity.gps,
        parking_mode=specs.features.parking_mode,
    )


# ---------------------------------------------------------------------------
# Data loading
# ---------------------------------------------------------------------------

# In-memory stores populated at startup
_products: list[NormalizedProduct] = []
_products_by_id: dict[str, NormalizedProduct] = {}


async def _load_products() -> None:
    """Load products.json into memory and build the id lookup."""
    global _products, _products_by_id

    if not PRODUCTS_FILE.exists():
        raise FileNotFoundError(
            f"{PRODUCTS_FILE} not found. Run 'python main.py' first to build the catalog."
        )

    documents: list[dict] = orjson.loads(PRODUCTS_FILE.read_bytes())
    _products = [NormalizedProduct.model_validate(doc) for doc in documents]
    _products_by_id = {str(p.id): p for p in _products}
    logger.info("Loaded %d products from %s", len(_products), PRODUCTS_FILE)


# ---------------------------------------------------------------------------
# App setup
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI):
    await _load_products()
    yield


app = FastAPI(
    title="Dash Cam Catalog API",
    default_response_class=ORJSONResponse,
    lifespan=lifespan,
)

app.add_middleware(GZipMiddleware, minimum_size=500)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_methods=["GET"],
    allow_headers=["*"],
    max_age=86400,
)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@app.get("/api/products", response_model=list[ProductCard])
async def list_products(
    marketplace: str = "amazon_com",
    brand: str = "",
    search: str = "",
    min_price: float | None = None,
    max_price: float | None = None,
    min_rating: float | None = None,
    spec: list[str] = Query(default=[]),
    sort: str = DEFAULT_SORT,
):
    """Return slim product cards matching every given filter."""
    state = FilterState(
        marketplace=marketplace,
        brand=brand,
        search_text=search,
        price_range=PriceRange(min=min_price, max=max_price),
        min_rating=min_rating,
        selected_specs=spec,
    )
    matches = sort_products(apply_filters(_products, state), sort, marketplace)
    return [_to_card(p, marketplace) for p in matches]


@app.get("/api/products/{product_id}")
async def get_product(product_id: str):
    """Return the full normalized product, camelCase as stored."""
    product = _products_by_id.get(product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return product.model_dump(by_alias=True)


@app.get("/api/brands", response_model=list[str])
async def list_brands():
    return get_brands(_products)


@app.get("/api/resolutions", response_model=list[str])
async def list_resolutions():
    return get_resolutions(_products)
