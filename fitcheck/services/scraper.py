import re
from typing import Any, Dict, Iterator, Optional
from urllib.parse import urlparse

import httpx
import structlog

from ..config import settings
from ..schemas.product import ProductData, SizeChart
from .extractors import (
    detect_category,
    extract_images,
    extract_json_ld,
    extract_meta_tags,
    extract_price,
    extract_sizes,
    parse_leading_float,
    parse_size_chart,
)


logger = structlog.get_logger("fitcheck")


SIZE_CHART_URLS: Dict[str, str] = {
    "nike": "https://www.nike.com/size-fit-guide",
    "adidas": "https://www.adidas.com/us/help/size_guide",
    "zara": "https://www.zara.com/us/en/help/size-guide",
    "hm": "https://www2.hm.com/en_us/customer-service/size-guide.html",
    "uniqlo": "https://www.uniqlo.com/us/en/size-guide",
    "gap": "https://www.gap.com/browse/sizeChart.do",
    "allsaints": "https://www.allsaints.com/size-guide/",
}


class ScrapeError(RuntimeError):
    pass


def get_size_chart_url(brand: str, category: str | None = None) -> str | None:
    brand_key = re.sub(r"[^a-z]", "", (brand or "").lower())
    return SIZE_CHART_URLS.get(brand_key)


def _json_ld_products(blocks: list) -> Iterator[Dict[str, Any]]:
    for block in blocks:
        candidates = block if isinstance(block, list) else [block]
        for candidate in candidates:
            if not isinstance(candidate, dict):
                continue
            if candidate.get("@type") == "Product" or candidate.get("type") == "Product":
                yield candidate


def _first(value: Any) -> Any:
    if isinstance(value, list):
        return value[0] if value else None
    return value


def _name_of(value: Any) -> Optional[str]:
    if isinstance(value, str) and value:
        return value
    if isinstance(value, dict) and isinstance(value.get("name"), str):
        return value["name"] or None
    return None


def _brand_from_hostname(url: str) -> Optional[str]:
    labels = (urlparse(url).hostname or "").split(".")
    if len(labels) < 2:
        return None
    return labels[-2] or None


def build_product_data(url: str, html: str) -> ProductData:
    """Assemble a ProductData record from one product page.

    Meta tags and the pattern extractors take precedence; JSON-LD ``Product``
    entries only fill fields that are still empty, first entry first. Brand
    falls back to the registrable-looking label of the hostname.
    """
    meta = extract_meta_tags(html)
    images = extract_images(html, url)
    sizes = extract_sizes(html)
    price, currency = extract_price(html)

    fields: Dict[str, Any] = {
        "name": meta.get("og:title") or meta.get("twitter:title"),
        "description": meta.get("og:description") or meta.get("description"),
        "image_url": meta.get("og:image") or (images[0] if images else None),
        "price": price,
        "currency": currency,
        "sizes": sizes or None,
    }

    for product in _json_ld_products(extract_json_ld(html)):
        if not fields.get("name") and isinstance(product.get("name"), str):
            fields["name"] = product["name"] or None
        if not fields.get("brand"):
            fields["brand"] = _name_of(product.get("brand")) or _name_of(product.get("manufacturer"))
        if not fields.get("description") and isinstance(product.get("description"), str):
            fields["description"] = product["description"] or None
        if not fields.get("material"):
            fields["material"] = _name_of(_first(product.get("material")))

        offer = _first(product.get("offers"))
        if isinstance(offer, dict):
            if fields.get("price") is None:
                fields["price"] = parse_leading_float(offer.get("price"))
            if not fields.get("currency") and isinstance(offer.get("priceCurrency"), str):
                fields["currency"] = offer["priceCurrency"] or None

        image = _first(product.get("image"))
        if not fields.get("image_url"):
            if isinstance(image, str):
                fields["image_url"] = image or None
            elif isinstance(image, dict) and isinstance(image.get("url"), str):
                fields["image_url"] = image["url"] or None

    if not fields.get("brand"):
        fields["brand"] = _brand_from_hostname(url)

    fields["category"] = detect_category(url, html)
    return ProductData(**fields)


class ProductScraper:
    def __init__(self, timeout: float | None = None, user_agent: str | None = None) -> None:
        self.timeout = timeout if timeout is not None else settings.scrape_timeout_seconds
        self.user_agent = user_agent or settings.scrape_user_agent

    async def fetch_html(self, url: str) -> str:
        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
            resp = await client.get(url, headers={"User-Agent": self.user_agent})
            resp.raise_for_status()
            return resp.text

    async def scrape_product_page(self, url: str) -> ProductData:
        try:
            html = await self.fetch_html(url)
            return build_product_data(url, html)
        except Exception as e:
            logger.error("product_scrape_failed", url=url, error=str(e))
            raise ScrapeError(f"Failed to scrape product page: {e}") from e

    async def scrape_size_chart(self, url: str) -> SizeChart:
        """Fetch a brand size guide and parse its first size table.

        Size charts are enrichment only: any failure is logged and an empty
        chart is returned so the product import can go ahead.
        """
        try:
            html = await self.fetch_html(url)
            return parse_size_chart(html)
        except Exception as e:
            logger.warning("size_chart_scrape_failed", url=url, error=str(e))
            return {}
