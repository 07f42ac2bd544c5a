# ================================
# FILE: salemap/sale_scan.py
# PURPOSE: Batch job — query every center, dedup by place id, ask the LLM per store,
#          overwrite stores.geojson once at the end.
# Run:  python -m salemap.sale_scan [--loglevel DEBUG] [--output stores.geojson]
# Exit: 0 ok · 1 config · 2 places query · 3 write failure
# ================================

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple

from .config import ConfigError, ScanConfig, load_config
from .places_nearby import PlaceCandidate, PlacesQueryError, collect_unique_places, search_nearby
from .sale_evaluator import SaleVerdict, build_client, evaluate_site
from .stores_geojson import SaleFeature, write_features

logger = logging.getLogger("salemap.sale_scan")

EXIT_OK = 0
EXIT_CONFIG = 1
EXIT_PLACES = 2
EXIT_WRITE = 3

SearchFn = Callable[[Tuple[float, float], ScanConfig], List[PlaceCandidate]]
EvaluateFn = Callable[[str], SaleVerdict]


@dataclass
class ScanReport:
    locations: int = 0
    raw_places: int = 0
    unique_places: int = 0
    without_website: int = 0
    sales: int = 0
    errors: int = 0


def setup_logging(level: str = "INFO") -> None:
    numeric = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    logger.debug("Logging initialized at %s", level)


def to_feature(place: PlaceCandidate, verdict: SaleVerdict) -> SaleFeature:
    return SaleFeature(
        name=place.name or "(unnamed)",
        website=place.website or "",
        headline=verdict.headline or "Sale",
        discount=verdict.discount,
        longitude=float(place.longitude),
        latitude=float(place.latitude),
    )


def find_sales(places: List[PlaceCandidate], evaluate: EvaluateFn,
               report: Optional[ScanReport] = None) -> List[SaleFeature]:
    """Evaluate each place with a website, one at a time.

    A failure on one store is logged and skipped; it never aborts the loop.
    """
    report = report if report is not None else ScanReport()
    features: List[SaleFeature] = []
    for p in places:
        if not p.website:
            report.without_website += 1
            continue
        try:
            verdict = evaluate(p.website)
            if verdict.sale:
                features.append(to_feature(p, verdict))
                logger.info("%-35s → SALE (%s)", p.name, verdict.headline or "Sale")
            else:
                logger.info("%-35s → -", p.name)
        except Exception as e:
            report.errors += 1
            logger.warning("%-35s → error: %s", p.name, e)
    report.sales = len(features)
    return features


def run_scan(cfg: ScanConfig, search: SearchFn = search_nearby,
             evaluate: Optional[EvaluateFn] = None) -> Tuple[List[SaleFeature], ScanReport]:
    """Collect, dedup and evaluate. PlacesQueryError propagates (nothing is saved)."""
    if evaluate is None:
        client = build_client(cfg)
        evaluate = lambda url: evaluate_site(url, cfg, client)  # noqa: E731

    report = ScanReport(locations=len(cfg.locations))
    logger.info("Querying %d locations × %d results, radius %d m…",
                len(cfg.locations), cfg.max_results, cfg.search_radius_m)

    result_sets = []
    for center in cfg.locations:
        places = search(center, cfg)
        logger.debug("%s → %d place(s)", center, len(places))
        result_sets.append(places)

    unique, report.raw_places = collect_unique_places(result_sets)
    report.unique_places = len(unique)
    logger.info("Google returned %d places; %d unique.", report.raw_places, report.unique_places)

    features = find_sales(unique, evaluate, report)
    return features, report


def main(argv: Optional[List[str]] = None, **overrides: Any) -> int:
    parser = argparse.ArgumentParser(description="Find stores advertising a sale and write stores.geojson.")
    parser.add_argument("--output", help="GeoJSON output path (default: SALES_OUTPUT_PATH or stores.geojson)")
    parser.add_argument("--loglevel", default="INFO", help="DEBUG, INFO, WARNING, …")
    args = parser.parse_args(argv)
    setup_logging(args.loglevel)

    try:
        cfg = load_config()
        if args.output:
            cfg = dataclasses.replace(cfg, output_path=args.output)
    except ConfigError as e:
        logger.error("%s", e)
        return EXIT_CONFIG

    try:
        features, report = run_scan(cfg, **overrides)
    except PlacesQueryError as e:
        logger.error("Places query failed, aborting without saving: %s", e)
        return EXIT_PLACES

    try:
        write_features(cfg.output_path, features)
    except OSError as e:
        logger.error("Could not write %s: %s", cfg.output_path, e)
        return EXIT_WRITE

    logger.info("Saved %d sale(s) to %s (unique=%d, no website=%d, errors=%d)",
                report.sales, cfg.output_path, report.unique_places, report.without_website, report.errors)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
