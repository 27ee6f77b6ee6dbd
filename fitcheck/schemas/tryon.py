from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field


class TryOnRecord(BaseModel):
    id: str
    clothing_item_id: str
    baseline_image_url: str = ""
    result_image_url: str
    prompt: str
    created_at: datetime


class TryOnResponse(BaseModel):
    success: bool
    provider: str
    result_image_url: str
    timestamp: str


class EditedImageResponse(BaseModel):
    success: bool
    result_image_url: str


class OutfitItem(BaseModel):
    image_url: str
    category: str


class OutfitRequest(BaseModel):
    items: List[OutfitItem]
    occasion: Optional[str] = None
    season: Optional[str] = None


class OutfitCombination(BaseModel):
    items: List[str] = Field(default_factory=list)
    reason: str = ""


class OutfitSuggestion(BaseModel):
    suggestion: str
    combinations: List[OutfitCombination] = Field(default_factory=list)
