from fastapi import APIRouter, Depends
from pydantic import ValidationError

from ..dependencies import get_gemini
from ..schemas.tryon import OutfitRequest, OutfitSuggestion
from ..services.gemini import DEFAULT_SUGGESTION_TEXT, GeminiService


router = APIRouter(prefix="/outfits", tags=["outfits"])


@router.post("/suggest", response_model=OutfitSuggestion)
async def suggest_outfit(body: OutfitRequest, gemini: GeminiService = Depends(get_gemini)) -> OutfitSuggestion:
    result = await gemini.generate_outfit_suggestion(
        [item.model_dump() for item in body.items],
        occasion=body.occasion,
        season=body.season,
    )
    try:
        return OutfitSuggestion.model_validate(result)
    except ValidationError:
        return OutfitSuggestion(suggestion=DEFAULT_SUGGESTION_TEXT)
