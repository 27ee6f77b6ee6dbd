"""Best-effort extractors for product pages and size-guide pages.

Markup-shaped data (meta tags, JSON-LD, images, tables) is read through
BeautifulSoup. Free-text tokens (sizes, prices, categories) are pattern-matched
against the raw HTML, so they also pick up values from inline scripts and
attributes. Every extractor is pure and tolerates arbitrary input.
"""
import json
import re
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from ..schemas.product import SizeChart


SIZE_PATTERNS: List[re.Pattern] = [
    re.compile(r"\b(XXS|XS|S|M|L|XL|XXL|XXXL)\b"),
    re.compile(r"\b(size\s*[0-9]+)\b", re.IGNORECASE),
    re.compile(r"\b([0-9]+[A-Z])\b"),  # 32W, 34L
]

# Tried in order, first parseable match wins
PRICE_PATTERNS: List[re.Pattern] = [
    re.compile(r"[\$£€]\s*([0-9,]+\.?[0-9]*)"),
    re.compile(r"([0-9,]+\.?[0-9]*)\s*[\$£€]"),
    re.compile(r"\"price\"\s*:\s*\"?([0-9,]+\.?[0-9]*)\"?", re.IGNORECASE),
    re.compile(r"data-price=[\"']([0-9,]+\.?[0-9]*)", re.IGNORECASE),
]

CATEGORY_PATTERNS: Dict[str, re.Pattern] = {
    "shirt": re.compile(r"shirt|blouse|top", re.IGNORECASE),
    "pants": re.compile(r"pants|trousers|jeans|bottoms", re.IGNORECASE),
    "dress": re.compile(r"dress|gown", re.IGNORECASE),
    "shoes": re.compile(r"shoes|sneakers|boots|footwear", re.IGNORECASE),
    "jacket": re.compile(r"jacket|coat|blazer|outerwear", re.IGNORECASE),
}

SIZE_TABLE_KEYWORDS = re.compile(r"size|chest|waist|length", re.IGNORECASE)
SIZE_LABEL = re.compile(r"(XXS|XS|S|M|L|XL|XXL|XXXL|\d+)", re.IGNORECASE)

_LEADING_NUMBER = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+))")

_OG_PROPERTY = re.compile(r"^og:", re.IGNORECASE)
_TWITTER_NAME = re.compile(r"^twitter:", re.IGNORECASE)


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "html.parser")


def parse_leading_float(value: Any) -> Optional[float]:
    """Read the number at the start of ``value`` ("96 cm" -> 96.0)."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if not isinstance(value, str):
        return None
    match = _LEADING_NUMBER.match(value)
    if not match:
        return None
    return float(match.group(1))


def _absolute(url: str, base_url: str) -> str:
    return url if url.startswith("http") else urljoin(base_url, url)


def extract_meta_tags(html: str) -> Dict[str, str]:
    soup = _soup(html)
    metas = soup.find_all("meta")
    tags: Dict[str, str] = {}

    for meta in metas:
        prop = meta.get("property") or ""
        content = meta.get("content")
        if content and _OG_PROPERTY.match(prop):
            tags[f"og:{prop[3:]}"] = content

    for meta in metas:
        name = meta.get("name") or ""
        content = meta.get("content")
        if content and _TWITTER_NAME.match(name):
            tags[f"twitter:{name[8:]}"] = content

    for meta in metas:
        name = meta.get("name")
        content = meta.get("content")
        if name and content:
            tags[name] = content

    return tags


def extract_json_ld(html: str) -> List[Any]:
    blocks: List[Any] = []
    for script in _soup(html).find_all("script", type="application/ld+json"):
        raw = script.string if script.string is not None else script.get_text()
        try:
            blocks.append(json.loads(raw))
        except (TypeError, ValueError):
            continue
    return blocks


def extract_images(html: str, base_url: str) -> List[str]:
    soup = _soup(html)
    images: Dict[str, None] = {}

    for img in soup.find_all("img", src=True):
        url = img["src"]
        if url and "icon" not in url and "logo" not in url:
            images[_absolute(url, base_url)] = None

    # Lazy-loaded images; not filtered for icon/logo
    for element in soup.find_all(attrs={"data-src": True}):
        url = element["data-src"]
        if url:
            images[_absolute(url, base_url)] = None

    return list(images)


def extract_sizes(html: str) -> List[str]:
    sizes: Dict[str, None] = {}
    for pattern in SIZE_PATTERNS:
        for match in pattern.finditer(html or ""):
            sizes[match.group(1).upper()] = None
    return list(sizes)


def extract_price(html: str) -> Tuple[Optional[float], Optional[str]]:
    html = html or ""
    for pattern in PRICE_PATTERNS:
        match = pattern.search(html)
        if not match:
            continue
        try:
            price = float(match.group(1).replace(",", ""))
        except ValueError:
            continue
        if "£" in html:
            currency = "GBP"
        elif "€" in html:
            currency = "EUR"
        else:
            currency = "USD"
        return price, currency
    return None, None


def detect_category(url: str, html: str) -> Optional[str]:
    for category, pattern in CATEGORY_PATTERNS.items():
        if pattern.search(url or "") or pattern.search(html or ""):
            return category
    return None


def parse_size_chart(html: str) -> SizeChart:
    """Build a size chart from the first qualifying ``<table>`` on a size-guide page.

    Tables without sizing vocabulary are skipped. Rows are kept only when their
    first cell is a letter size or a bare number; remaining cells are matched to
    header names by position. Scanning stops at the first table with any rows.
    """
    chart: SizeChart = {}

    for table in _soup(html).find_all("table"):
        if not SIZE_TABLE_KEYWORDS.search(table.get_text(" ")):
            continue

        headers = [th.get_text(" ", strip=True) for th in table.find_all("th")]

        for row in table.find_all("tr"):
            cells = [td.get_text(" ", strip=True) for td in row.find_all("td", recursive=False)]
            if not cells:
                continue
            label = cells[0]
            if not SIZE_LABEL.fullmatch(label):
                continue
            entry: Dict[str, float] = {}
            for i in range(1, min(len(cells), len(headers))):
                value = parse_leading_float(cells[i])
                if value is not None:
                    entry[headers[i].lower()] = value
            chart[label] = entry

        if chart:
            break

    return chart
