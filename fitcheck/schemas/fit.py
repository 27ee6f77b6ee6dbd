from typing import Dict, List, Optional
from pydantic import BaseModel, Field


class FitResult(BaseModel):
    fits: bool
    score: float
    warnings: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


class FitCheckRequest(BaseModel):
    user_measurements: Dict[str, float]
    item_measurements: Dict[str, float] = Field(default_factory=dict)


class StoredItemFitRequest(BaseModel):
    user_measurements: Dict[str, float]
    size: Optional[str] = None
