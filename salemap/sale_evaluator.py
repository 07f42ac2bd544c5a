# salemap/sale_evaluator.py
# Per-site sale check via OpenAI Responses API + web search tool.
# Anything that isn't a JSON object with "sale": true counts as no sale.

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Optional

from openai import OpenAI

from .config import ScanConfig

logger = logging.getLogger(__name__)

PROMPT = (
    "Visit {url}. If it clearly advertises a store-wide sale or clearance "
    "(Finnish: {fi_terms}, English: clearance, % off), return JSON like "
    '{{"sale":true,"headline":"-70% loppuunmyynti","discount":"70%"}}. '
    'Otherwise {{"sale":false}}. Return ONLY JSON.'
)

WEB_SEARCH_TOOL = {"type": "web_search_preview"}

# Single attempt per store; web search can be slow
OPENAI_TIMEOUT_SECONDS = 180.0


@dataclass(frozen=True)
class SaleVerdict:
    sale: bool
    headline: Optional[str] = None
    discount: Optional[str] = None


NO_SALE = SaleVerdict(sale=False)


def build_client(cfg: ScanConfig) -> OpenAI:
    return OpenAI(
        api_key=cfg.openai_api_key,
        project=cfg.openai_project,
        max_retries=0,
        timeout=OPENAI_TIMEOUT_SECONDS,
    )


def build_prompt(url: str, cfg: ScanConfig) -> str:
    return PROMPT.format(url=url, fi_terms=", ".join(cfg.sale_keywords[:5]))


def _output_text(resp: Any) -> str:
    text = getattr(resp, "output_text", None)
    if text:
        return text
    # Some client versions expose fragmented outputs under resp.output
    parts = []
    for p in getattr(resp, "output", None) or []:
        for c in getattr(p, "content", None) or []:
            if getattr(c, "type", "") == "output_text" and getattr(c, "text", None):
                parts.append(c.text)
    return "\n".join(parts)


def _opt_str(v: Any) -> Optional[str]:
    if v is None:
        return None
    s = str(v).strip()
    return s or None


def parse_verdict(text: str) -> SaleVerdict:
    """Strip code fences and parse the JSON object; malformed input means no sale."""
    if not text:
        return NO_SALE
    m = re.search(r"```(?:json)?\s*(\{[\s\S]*?\})\s*```", text)
    if m:
        text = m.group(1)
    try:
        data = json.loads(text.strip())
    except ValueError:
        logger.warning("Unparseable sale verdict, treating as no sale: %r", text[:200])
        return NO_SALE
    if not isinstance(data, dict) or data.get("sale") is not True:
        return NO_SALE
    return SaleVerdict(sale=True, headline=_opt_str(data.get("headline")), discount=_opt_str(data.get("discount")))


def evaluate_site(url: str, cfg: ScanConfig, client: OpenAI) -> SaleVerdict:
    """Ask the model whether url advertises a sale.

    API errors propagate; the caller decides whether to skip the store.
    """
    resp = client.responses.create(
        model=cfg.model,
        tools=[WEB_SEARCH_TOOL],
        input=build_prompt(url, cfg),
    )
    text = _output_text(resp)
    verdict = parse_verdict(text)
    if not verdict.sale:
        logger.debug("No sale for %s (raw=%r)", url, text[:200])
    return verdict
