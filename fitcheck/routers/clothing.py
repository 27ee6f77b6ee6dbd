from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx
import structlog
from fastapi import APIRouter, Depends, HTTPException

from ..config import settings
from ..dependencies import get_optional_gemini, get_repository, get_scraper
from ..schemas.product import ClothingItem, ImportUrlRequest, ImportUrlResponse
from ..services.gemini import GeminiService
from ..services.repository import ClothingRepository
from ..services.scraper import ProductScraper, ScrapeError, get_size_chart_url


logger = structlog.get_logger("fitcheck")

router = APIRouter(prefix="/clothing", tags=["clothing"])


async def _extract_measurements(gemini: GeminiService, image_url: str, category: Optional[str]) -> Dict[str, Any]:
    async with httpx.AsyncClient(timeout=settings.image_fetch_timeout_seconds, follow_redirects=True) as client:
        resp = await client.get(image_url, headers={"User-Agent": settings.scrape_user_agent})
        resp.raise_for_status()
        mime_type = (resp.headers.get("content-type") or "image/jpeg").split(";")[0].strip()
        image_bytes = resp.content
    return await gemini.extract_clothing_measurements(image_bytes, category, mime_type=mime_type)


@router.post("/import-url", response_model=ImportUrlResponse)
async def import_url(
    body: ImportUrlRequest,
    scraper: ProductScraper = Depends(get_scraper),
    repository: ClothingRepository = Depends(get_repository),
    gemini: Optional[GeminiService] = Depends(get_optional_gemini),
):
    """Import a clothing item from a product page URL.

    The product page must scrape cleanly and yield an image; the brand size
    chart and the AI measurement estimate are best-effort extras.
    """
    url = (body.url or "").strip()
    if not url.startswith("http"):
        raise HTTPException(status_code=400, detail="Invalid URL provided")

    try:
        product = await scraper.scrape_product_page(url)
    except ScrapeError as e:
        raise HTTPException(status_code=502, detail={"error": "Failed to import from URL", "details": str(e)})

    if not product.image_url:
        raise HTTPException(status_code=400, detail="Could not extract product image from URL")

    sizing_data: Dict[str, Any] = {}
    if product.brand:
        size_chart_url = get_size_chart_url(product.brand, product.category)
        if size_chart_url:
            chart = await scraper.scrape_size_chart(size_chart_url)
            if chart:
                product.size_chart = chart
                sizing_data["size_chart"] = chart

    if gemini is not None:
        try:
            measurements = await _extract_measurements(gemini, product.image_url, product.category)
            sizing_data.update(measurements)
        except Exception as e:
            logger.warning("measurement_extraction_failed", image_url=product.image_url, error=str(e))

    item = repository.create_clothing_item(
        name=product.name or "Imported Item",
        category=product.category or "other",
        brand=product.brand,
        source_url=url,
        image_url=product.image_url,
        price=product.price,
        currency=product.currency,
        sizing_data=sizing_data,
        metadata={
            "description": product.description,
            "sizes": product.sizes,
            "material": product.material,
            "imported_at": datetime.now(tz=timezone.utc).isoformat(),
        },
    )
    logger.info("clothing_imported", item_id=item.id, brand=item.brand, category=item.category)

    return ImportUrlResponse(success=True, item=item, product_data=product, sizing_data=sizing_data)


@router.get("", response_model=List[ClothingItem])
async def list_items(repository: ClothingRepository = Depends(get_repository)):
    return repository.list_clothing_items()


@router.get("/{item_id}", response_model=ClothingItem)
async def get_item(item_id: str, repository: ClothingRepository = Depends(get_repository)):
    item = repository.get_clothing_item(item_id)
    if item is None:
        raise HTTPException(status_code=404, detail="Clothing item not found")
    return item
