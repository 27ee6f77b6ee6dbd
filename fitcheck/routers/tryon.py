import os
import tempfile
import time
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from ..config import settings
from ..dependencies import get_optional_gemini, get_repository
from ..schemas.tryon import TryOnRecord, TryOnResponse
from ..services.gemini import GeminiService, GenerationError
from ..services.repository import ClothingRepository
from ..services.vto_providers import get_provider


logger = structlog.get_logger("fitcheck")

router = APIRouter(prefix="/try-on", tags=["try-on"])


def _safe_suffix(filename: Optional[str], fallback: str = ".jpg") -> str:
    """Return a filesystem-safe suffix derived from the uploaded filename."""
    if not filename:
        return fallback
    name = os.path.basename(filename)
    # Strip query strings or fragments that may be appended (common with CDN URLs)
    name = name.split("?")[0].split("#")[0]
    suffix = os.path.splitext(name)[1]
    return suffix or fallback


def _require_image(upload: UploadFile, label: str) -> None:
    if upload.content_type is None or not upload.content_type.startswith("image/"):
        raise HTTPException(status_code=400, detail=f"{label} must be an image file")


async def save_upload(upload: UploadFile) -> str:
    os.makedirs(settings.storage_dir, exist_ok=True)
    with tempfile.NamedTemporaryFile(delete=False, dir=settings.storage_dir, suffix=_safe_suffix(upload.filename)) as tmp:
        tmp.write(await upload.read())
        return tmp.name


@router.post("", response_model=TryOnResponse)
async def try_on(
    user_image: UploadFile = File(...),
    clothing_image: UploadFile = File(...),
    clothing_item_id: Optional[str] = Form(None),
    baseline_image_url: Optional[str] = Form(None),
    background_preference: Optional[str] = Form(None),
    repository: ClothingRepository = Depends(get_repository),
    gemini: Optional[GeminiService] = Depends(get_optional_gemini),
):
    """Render the user wearing the uploaded clothing item.

    The result is written to storage and served at ``/files/...``. When
    ``clothing_item_id`` is given the try-on is added to that item's history.
    """
    _require_image(user_image, "user_image")
    _require_image(clothing_image, "clothing_image")

    try:
        provider = get_provider(settings.vto_provider, gemini)
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))

    user_path = await save_upload(user_image)
    clothing_path = await save_upload(clothing_image)

    try:
        out_path = await provider.generate(user_path, clothing_path, background_preference=background_preference)
    except GenerationError as e:
        logger.warning("try_on_generation_failed", provider=provider.name, error=str(e))
        raise HTTPException(status_code=502, detail={"error": "Failed to generate virtual try-on", "details": str(e)})

    if not out_path or not os.path.exists(out_path):
        raise HTTPException(status_code=500, detail="Try-on provider failed to generate an image")

    result_url = f"/files/{os.path.basename(out_path)}"

    if clothing_item_id:
        repository.create_try_on_record(
            clothing_item_id=clothing_item_id,
            baseline_image_url=baseline_image_url or "",
            result_image_url=result_url,
            prompt=f"Virtual try-on with {background_preference or 'neutral'} background",
        )

    return TryOnResponse(
        success=True,
        provider=provider.name,
        result_image_url=result_url,
        timestamp=time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
    )


@router.get("/history", response_model=list[TryOnRecord])
async def history(clothing_item_id: Optional[str] = None, repository: ClothingRepository = Depends(get_repository)):
    return repository.list_try_on_records(clothing_item_id)
