from fastapi import HTTPException, Request, status

from .services.gemini import GeminiService
from .services.repository import ClothingRepository, repository
from .services.scraper import ProductScraper


def get_optional_gemini(request: Request) -> GeminiService | None:
    return getattr(request.app.state, "gemini", None)


def get_gemini(request: Request) -> GeminiService:
    service = get_optional_gemini(request)
    if service is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="GEMINI_API_KEY not configured")
    return service


def get_repository() -> ClothingRepository:
    return repository


def get_scraper() -> ProductScraper:
    return ProductScraper()
