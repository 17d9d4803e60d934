"""
Specification extraction orchestrator.

Loads the raw listing collection, runs every listing through
source aggregation -> extraction -> normalization, and writes the catalog
document the API serves (sorted by popularity, most popular first).
"""

import json
import logging
import shutil
import time
from collections import Counter
from pathlib import Path

from config import BACKUP_FILE, PRODUCTS_FILE, RAW_PRODUCTS_FILE
from models import SPEC_GROUPS, NormalizedProduct, RawProduct
from processor import BatchReport, process_products

logger = logging.getLogger(__name__)


def load_raw_products(path: Path = RAW_PRODUCTS_FILE) -> list[dict]:
    logger.info(f"Loading raw products from {path}")
    return json.loads(path.read_text(encoding="utf-8"))


def _popularity(product: RawProduct | dict) -> float:
    if isinstance(product, RawProduct):
        return product.popularity
    return product.get("popularity") or 0


def _label(product: RawProduct | dict) -> str:
    if isinstance(product, RawProduct):
        return f"{product.brand} {product.model[:50]}"
    return f"{product.get('brand', '')} {str(product.get('model', ''))[:50]}"


def save_products(products: list[RawProduct | dict], path: Path = PRODUCTS_FILE, backup: Path = BACKUP_FILE) -> None:
    """Write the catalog document, keeping the previous one as a backup."""
    if path.exists():
        shutil.copyfile(path, backup)
        logger.info(f"Backed up previous catalog to {backup}")

    ordered = sorted(products, key=_popularity, reverse=True)
    # Failed records are written back exactly as they came in
    documents = [p.model_dump(by_alias=True) if isinstance(p, RawProduct) else p for p in ordered]
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(documents, indent=2, ensure_ascii=False), encoding="utf-8")
    logger.info(f"Wrote {len(documents)} products to {path}")


def print_summary(products: list[RawProduct | dict]) -> None:
    print(f"\n{'='*60}")
    print(f"Processed {len(products)} products:")
    print(f"{'='*60}")

    for p in products:
        if not isinstance(p, NormalizedProduct):
            print(f"\n  {_label(p)}  (UNPROCESSED)")
            continue
        video, physical, conn = p.specs.video, p.specs.physical, p.specs.connectivity
        print(f"\n  {p.brand} {p.clean_model_name}")
        print(f"    Video:    {video.resolution} @ {video.fps}fps"
              f"{' HDR' if video.hdr else ''}{' WDR' if video.wdr else ''}"
              f"{' night-vision' if video.night_vision else ''}")
        print(f"    Physical: {physical.fov}° FOV, {physical.channels} channel(s), "
              f"screen {physical.screen_size or '-'} {physical.screen_type or ''}")
        flags = [name for name, on in (("wifi", conn.wifi), ("gps", conn.gps), ("bluetooth", conn.bluetooth)) if on]
        print(f"    Connect:  {', '.join(flags) or 'none'}")
        print(f"    Storage:  included {p.specs.storage.included_storage or '-'} GB, "
              f"max {p.specs.storage.max_storage or '-'} GB")


def print_report(products: list[RawProduct | dict], report: BatchReport, wall_clock: float) -> None:
    """Print where extracted values came from across the batch."""
    processed = [p for p in products if isinstance(p, NormalizedProduct) and p.extraction_metadata]
    total_attempted = report.processed + len(report.failed) + len(report.rejected)

    print(f"\n{'='*70}")
    print("EXTRACTION REPORT")
    print(f"{'='*70}")

    print("\n── Reliability ──")
    print(f"  Listings attempted: {total_attempted}")
    print(f"  Processed:          {report.processed}")
    print(f"  Rejected (error):   {len(report.rejected)}")
    print(f"  Failed (kept raw):  {len(report.failed)}")
    if report.rejected:
        print(f"    rejected ids: {', '.join(report.rejected)}")
    if report.failed:
        print(f"    failed ids:   {', '.join(report.failed)}")

    if not processed:
        print("\n  No processed products to report on.")
        return

    # ── Source breakdown ────────────────────────────────────────────
    by_source: Counter[str] = Counter()
    per_attribute: dict[str, Counter[str]] = {}
    for p in processed:
        for group, records in p.extraction_metadata.sources_used.items():
            for attribute, record in records.items():
                by_source[record.source] += 1
                per_attribute.setdefault(f"{group}.{attribute}", Counter())[record.source] += 1

    total = sum(by_source.values())
    print("\n── Value sources ──")
    for source, count in by_source.most_common():
        print(f"  {source:<20} {count:>5}  ({count/total*100:.0f}%)")

    print(f"\n  {'Attribute':<34} {'Found':>6} {'Default':>8} {'Null':>6}")
    print(f"  {'-'*56}")
    n = len(processed)
    for group, attributes in SPEC_GROUPS.items():
        for attribute in attributes:
            counts = per_attribute.get(f"{group}.{attribute}", Counter())
            defaults = counts.get("default", 0)
            found = sum(counts.values()) - defaults
            print(f"  {group + '.' + attribute:<34} {found:>6} {defaults:>8} {n - found - defaults:>6}")

    print("\n── Timing ──")
    print(f"  Wall clock: {wall_clock:.3f}s ({wall_clock / n * 1000:.1f}ms/product)")
    print(f"\n{'='*70}")


def main() -> None:
    raw_products = load_raw_products()

    t0 = time.monotonic()
    report = BatchReport()
    products = process_products(raw_products, report)
    wall_clock = time.monotonic() - t0

    print_summary(products)
    save_products(products)
    print_report(products, report, wall_clock)


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    main()
