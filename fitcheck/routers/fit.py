from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException

from ..dependencies import get_repository
from ..schemas.fit import FitCheckRequest, FitResult, StoredItemFitRequest
from ..services.fit import check_fit_compatibility
from ..services.repository import ClothingRepository


router = APIRouter(prefix="/fit", tags=["fit"])


def _numeric(values: Any) -> Dict[str, float]:
    if not isinstance(values, dict):
        return {}
    return {k: float(v) for k, v in values.items() if isinstance(v, (int, float)) and not isinstance(v, bool)}


@router.post("/check", response_model=FitResult)
async def check_fit(body: FitCheckRequest) -> FitResult:
    return check_fit_compatibility(body.user_measurements, body.item_measurements)


@router.post("/check/{item_id}", response_model=FitResult)
async def check_fit_for_item(
    item_id: str,
    body: StoredItemFitRequest,
    repository: ClothingRepository = Depends(get_repository),
) -> FitResult:
    """Score the user against a stored item.

    With ``size`` set, the matching size-chart row is used; otherwise the
    measurements estimated from the product image.
    """
    item = repository.get_clothing_item(item_id)
    if item is None:
        raise HTTPException(status_code=404, detail="Clothing item not found")

    if body.size:
        chart = item.sizing_data.get("size_chart") or {}
        if body.size not in chart:
            raise HTTPException(status_code=400, detail=f"Size {body.size} not found in size chart")
        item_measurements = _numeric(chart[body.size])
    else:
        item_measurements = _numeric(item.sizing_data.get("measurements"))

    return check_fit_compatibility(body.user_measurements, item_measurements)
