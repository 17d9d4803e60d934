"""
Diagnostic: run source aggregation + extraction only (no normalization).
Reports, per listing, which source and pattern produced every attribute.
"""

import json
from pathlib import Path

from config import RAW_PRODUCTS_FILE
from extractor import extract_specifications
from models import SPEC_GROUPS, RawProduct
from sources import aggregate_sources


def diagnose_product(product: RawProduct) -> dict:
    sources = aggregate_sources(product)
    report = {
        "id": product.id,
        "title": product.model,
        "sources": {s.name: len(s.text) for s in sources},
        "fields": {},
        "found": [],
        "defaulted": [],
        "missing": [],
    }

    extracted = extract_specifications(product)
    if extracted is None:
        report["rejected"] = True
        return report

    for group, attributes in SPEC_GROUPS.items():
        for attribute in attributes:
            key = f"{group}.{attribute}"
            spec = extracted[group][attribute]
            report["fields"][key] = spec
            if spec is None or spec.value is None:
                report["missing"].append(key)
            elif spec.source == "default":
                report["defaulted"].append(key)
            else:
                report["found"].append(key)

    return report


def main(path: Path = RAW_PRODUCTS_FILE):
    raw = json.loads(path.read_text(encoding="utf-8"))
    products = [RawProduct.model_validate(item) for item in raw]
    print(f"Diagnosing {len(products)} listings (extraction only, NO normalization)\n")

    all_reports = []
    for product in products:
        report = diagnose_product(product)
        all_reports.append(report)

        print(f"{'=' * 70}")
        print(f"  [{report['id']}] {report['title'][:64]}")
        print(f"{'=' * 70}")

        # Source sizes
        print("  Sources: " + " | ".join(f"{name} {size} chars" for name, size in report["sources"].items()))

        if report.get("rejected"):
            print("\n  REJECTED: title looks like an error page\n")
            continue

        print(f"\n  Found ({len(report['found'])}):")
        for key in report["found"]:
            spec = report["fields"][key]
            print(f"    {key:<34} {spec.value!r:<16} {spec.source:<17} {spec.confidence:.2f}  /{spec.pattern[:40]}/")

        if report["defaulted"]:
            print(f"\n  Defaulted ({len(report['defaulted'])}):")
            for key in report["defaulted"]:
                spec = report["fields"][key]
                print(f"    {key:<34} {spec.value!r:<16} confidence {spec.confidence:.2f}")

        if report["missing"]:
            print(f"\n  MISSING ({len(report['missing'])}): {report['missing']}")

        print()

    # Coverage table
    reports = [r for r in all_reports if not r.get("rejected")]
    print(f"\n{'=' * 70}")
    print("SUMMARY: Attribute coverage across all listings")
    print(f"{'=' * 70}")
    print(f"{'Attribute':<34} ", end="")
    for r in reports:
        print(f"{str(r['id'])[:8]:<10}", end="")
    print()
    print("-" * (35 + 10 * len(reports)))

    for group, attributes in SPEC_GROUPS.items():
        for attribute in attributes:
            key = f"{group}.{attribute}"
            print(f"{key:<34} ", end="")
            for r in reports:
                if key in r["found"]:
                    print(f"{'OK':<10}", end="")
                elif key in r["defaulted"]:
                    print(f"{'default':<10}", end="")
                else:
                    print(f"{'MISSING':<10}", end="")
            print()


if __name__ == "__main__":
    main()
