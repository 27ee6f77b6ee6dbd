import os
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from ..config import settings
from ..dependencies import get_gemini
from ..schemas.tryon import EditedImageResponse
from ..services.gemini import GeneratedImage, GeminiService, GenerationError


router = APIRouter(prefix="/images", tags=["images"])


async def _read_image(upload: UploadFile) -> tuple[bytes, str]:
    if upload.content_type is None or not upload.content_type.startswith("image/"):
        raise HTTPException(status_code=400, detail="Please upload an image file")
    return await upload.read(), upload.content_type


def _store(image: GeneratedImage, prefix: str) -> EditedImageResponse:
    os.makedirs(settings.storage_dir, exist_ok=True)
    name = f"{prefix}_{uuid.uuid4().hex}{image.extension}"
    with open(os.path.join(settings.storage_dir, name), "wb") as f:
        f.write(image.data)
    return EditedImageResponse(success=True, result_image_url=f"/files/{name}")


@router.post("/filter", response_model=EditedImageResponse)
async def apply_filter(
    image: UploadFile = File(...),
    prompt: str = Form(...),
    gemini: GeminiService = Depends(get_gemini),
):
    data, mime_type = await _read_image(image)
    try:
        result = await gemini.generate_filtered_image(data, prompt, mime_type=mime_type)
    except GenerationError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return _store(result, "filter")


@router.post("/edit", response_model=EditedImageResponse)
async def edit_image(
    image: UploadFile = File(...),
    prompt: str = Form(...),
    x: Optional[float] = Form(None),
    y: Optional[float] = Form(None),
    gemini: GeminiService = Depends(get_gemini),
):
    """Apply a global edit, or a localized one around ``(x, y)`` when both are given."""
    data, mime_type = await _read_image(image)
    hotspot = {"x": x, "y": y} if x is not None and y is not None else None
    try:
        result = await gemini.generate_edited_image(data, prompt, hotspot=hotspot, mime_type=mime_type)
    except GenerationError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return _store(result, "edit")
