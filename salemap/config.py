# ================================
# FILE: salemap/config.py
# PURPOSE: Scan configuration (env + constants), validated once at startup
# ================================

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Optional, Tuple

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


class SaleMapError(Exception):
    """Base class for everything this package raises on purpose."""


class ConfigError(SaleMapError):
    pass


# ---- Places query defaults ----
INCLUDED_TYPES: Tuple[str, ...] = (
    "bicycle_store", "book_store", "cell_phone_store",
    "clothing_store", "department_store", "discount_store", "electronics_store",
    "furniture_store", "gift_shop", "hardware_store", "home_goods_store",
    "home_improvement_store", "jewelry_store", "shoe_store", "shopping_mall",
    "sporting_goods_store",
)

# Query centers (lat, lng), central Helsinki
LOCATIONS: Tuple[Tuple[float, float], ...] = (
    (60.169168, 24.930956),  # Kamppi
    (60.168984, 24.938293),
    (60.169759, 24.944180),
    (60.167177, 24.945747),
    (60.162641, 24.939496),
    (60.156900, 24.919279),
    (60.160070, 24.880104),
    (60.187699, 24.979896),
    (60.198076, 24.930052),
    (60.181829, 24.950918),
)

SEARCH_RADIUS_M = 300
MAX_RESULTS = 20

# Finnish first (the prompt quotes the first five), then English
SALE_KEYWORDS: Tuple[str, ...] = (
    "loppuunmyynti", "kevätale", "tyhjennysmyynti", "alennus", "ale",
    "clearance", "% off", "sale",
)

DEFAULT_SALE_MODEL = "gpt-4.1"
DEFAULT_OUTPUT_PATH = "stores.geojson"


@dataclass(frozen=True)
class ScanConfig:
    google_api_key: str
    openai_api_key: str
    openai_project: Optional[str] = None
    model: str = DEFAULT_SALE_MODEL
    output_path: str = DEFAULT_OUTPUT_PATH
    search_radius_m: int = SEARCH_RADIUS_M
    max_results: int = MAX_RESULTS
    included_types: Tuple[str, ...] = INCLUDED_TYPES
    locations: Tuple[Tuple[float, float], ...] = LOCATIONS
    sale_keywords: Tuple[str, ...] = field(default=SALE_KEYWORDS)

    def __post_init__(self):
        if not self.google_api_key or not self.openai_api_key:
            raise ConfigError("Missing API keys: set GOOGLE_API_KEY and OPENAI_API_KEY (env or .env)")
        if self.search_radius_m <= 0:
            raise ConfigError(f"search radius must be positive, got {self.search_radius_m}")
        if not 1 <= self.max_results <= 20:
            raise ConfigError(f"max results must be within 1..20, got {self.max_results}")
        if not self.locations:
            raise ConfigError("at least one query location is required")


def _int_env(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None


def load_config(dotenv: bool = True) -> ScanConfig:
    """Read the environment (and .env) once and build a validated ScanConfig.

    Raises ConfigError when a key is missing, before any network call is made.
    """
    if dotenv:
        load_dotenv()

    cfg = ScanConfig(
        google_api_key=(os.getenv("GOOGLE_API_KEY") or "").strip(),
        openai_api_key=(os.getenv("OPENAI_API_KEY") or "").strip(),
        openai_project=(os.getenv("OPENAI_PROJECT") or "").strip() or None,
        model=(os.getenv("OPENAI_SALE_MODEL") or "").strip() or DEFAULT_SALE_MODEL,
        output_path=(os.getenv("SALES_OUTPUT_PATH") or "").strip() or DEFAULT_OUTPUT_PATH,
        search_radius_m=_int_env("SALES_SEARCH_RADIUS_M", SEARCH_RADIUS_M),
        max_results=_int_env("SALES_MAX_RESULTS", MAX_RESULTS),
    )
    logger.debug("Config loaded: model=%s output=%s radius=%sm max_results=%s",
                 cfg.model, cfg.output_path, cfg.search_radius_m, cfg.max_results)
    return cfg
