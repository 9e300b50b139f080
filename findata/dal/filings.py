"""SEC filing item catalogue.

Item names are defined by SEC regulation and rarely change, so a static
catalogue is a reliable stand-in when the Financial Datasets lookup is
unavailable (for example when only an FMP key is configured).
"""

from __future__ import annotations

import copy
from typing import Dict, List, Optional

import httpx
from loguru import logger

from findata.core.exceptions import UpstreamError
from findata.utils.http import get_json

ITEM_TYPES_URL = "https://api.financialdatasets.ai/filings/items/types/"

FilingItemTypes = Dict[str, List[Dict[str, str]]]


def _items(*pairs: tuple[str, str]) -> List[Dict[str, str]]:
    return [{"name": name, "title": title} for name, title in pairs]


FALLBACK_ITEM_TYPES: FilingItemTypes = {
    "10-K": _items(
        ("Item-1", "Business"),
        ("Item-1A", "Risk Factors"),
        ("Item-1B", "Unresolved Staff Comments"),
        ("Item-1C", "Cybersecurity"),
        ("Item-2", "Properties"),
        ("Item-3", "Legal Proceedings"),
        ("Item-4", "Mine Safety Disclosures"),
        ("Item-5", "Market for Common Equity"),
        ("Item-6", "Reserved"),
        ("Item-7", "Management's Discussion and Analysis (MD&A)"),
        ("Item-7A", "Quantitative and Qualitative Disclosures About Market Risk"),
        ("Item-8", "Financial Statements and Supplementary Data"),
        ("Item-9", "Changes in and Disagreements with Accountants"),
        ("Item-9A", "Controls and Procedures"),
        ("Item-9B", "Other Information"),
        ("Item-10", "Directors and Corporate Governance"),
        ("Item-11", "Executive Compensation"),
        ("Item-12", "Security Ownership"),
        ("Item-13", "Certain Relationships and Related Transactions"),
        ("Item-14", "Principal Accountant Fees and Services"),
        ("Item-15", "Exhibits and Financial Statement Schedules"),
    ),
    "10-Q": _items(
        ("Part-1,Item-1", "Financial Statements"),
        ("Part-1,Item-2", "Management's Discussion and Analysis (MD&A)"),
        ("Part-1,Item-3", "Quantitative and Qualitative Disclosures About Market Risk"),
        ("Part-1,Item-4", "Controls and Procedures"),
        ("Part-2,Item-1", "Legal Proceedings"),
        ("Part-2,Item-1A", "Risk Factors"),
        ("Part-2,Item-2", "Unregistered Sales of Equity Securities"),
        ("Part-2,Item-3", "Defaults Upon Senior Securities"),
        ("Part-2,Item-4", "Mine Safety Disclosures"),
        ("Part-2,Item-5", "Other Information"),
        ("Part-2,Item-6", "Exhibits"),
    ),
}


async def get_filing_item_types(
    client: Optional[httpx.AsyncClient] = None,
) -> FilingItemTypes:
    """Fetch canonical 10-K/10-Q item names, falling back to the static catalogue."""
    try:
        _, payload = await get_json(
            ITEM_TYPES_URL, label="/filings/items/types/", client=client
        )
    except UpstreamError as exc:
        logger.warning("filing item types unavailable, using static catalogue: {}", exc)
        return copy.deepcopy(FALLBACK_ITEM_TYPES)
    if not isinstance(payload, dict) or not payload:
        logger.warning("filing item types payload malformed, using static catalogue")
        return copy.deepcopy(FALLBACK_ITEM_TYPES)
    return payload


__all__ = ["get_filing_item_types", "FALLBACK_ITEM_TYPES", "ITEM_TYPES_URL"]
