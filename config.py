"""Configuration and constants for the dash cam catalog."""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

__all__ = [
    "DATA_DIR",
    "RAW_PRODUCTS_FILE",
    "PRODUCTS_FILE",
    "BACKUP_FILE",
    "OXYLABS_ENDPOINT",
    "OXYLABS_USERNAME",
    "OXYLABS_PASSWORD",
    "REQUEST_TIMEOUT",
    "REQUEST_DELAY",
    "OPERATION_TIMEOUT",
    "SEARCH_URLS",
    "PRODUCT_URLS",
    "MAX_FEATURES",
    "KNOWN_BRANDS",
    "CORS_ORIGINS",
]

# Data files
DATA_DIR = Path(os.getenv("DASHCAM_DATA_DIR", Path(__file__).parent / "data"))
RAW_PRODUCTS_FILE = DATA_DIR / "raw_products.json"
PRODUCTS_FILE = DATA_DIR / "products.json"
BACKUP_FILE = DATA_DIR / "products.backup.json"

# Oxylabs E-Commerce Scraper API
OXYLABS_ENDPOINT = "https://realtime.oxylabs.io/v1/queries"
OXYLABS_USERNAME = os.getenv("OXYLABS_USERNAME", "")
OXYLABS_PASSWORD = os.getenv("OXYLABS_PASSWORD", "")

# Request timeout per API call (seconds); rendering makes these slow
REQUEST_TIMEOUT = 120.0

# Fixed pause between sequential requests (seconds)
REQUEST_DELAY = 2.0

# Upper bound for a whole download run (seconds)
OPERATION_TIMEOUT = 5 * 60

SEARCH_URLS = [
    "https://www.amazon.com/s?k=dash+cam",
    "https://www.amazon.com/s?k=dashboard+camera",
    "https://www.amazon.co.uk/s?k=dash+cam",
    "https://www.amazon.co.uk/s?k=dashboard+camera",
]

# Hand-picked listings always included in a download run
PRODUCT_URLS = [
    "https://www.amazon.com/Garmin-Extra-Wide-180-degree-Connected-Features/dp/B093244D1J",
    "https://www.amazon.com/REDTIGER-Camera-Included-170%C2%B0Wide-Parking/dp/B098WVKF19",
]

# Feature bullets kept per product
MAX_FEATURES = 6

# Brands recognised in titles when the listing has no brand field
KNOWN_BRANDS = [
    "REDTIGER",
    "Garmin",
    "VIOFO",
    "Nextbase",
    "Vantrue",
    "Rove",
    "Thinkware",
    "BlackVue",
    "Cobra",
    "Rexing",
    "AZDOME",
    "Chortau",
    "70mai",
    "Apeman",
    "Crosstour",
    "WOLFBOX",
    "Miofive",
    "Nexar",
    "Kingslim",
    "Orskey",
]

CORS_ORIGINS = ["http://localhost:3000"]
