import mimetypes
import os
import uuid
from ...config import settings
from ..gemini import GeminiService


def _read_image(path: str) -> tuple[bytes, str]:
    guessed, _ = mimetypes.guess_type(path)
    with open(path, "rb") as f:
        return f.read(), guessed or "image/jpeg"


class GeminiTryOnProvider:
    name = "gemini"

    def __init__(self, service: GeminiService) -> None:
        self.service = service

    async def generate(self, user_image_path: str, garment_image_path: str, background_preference: str | None = None) -> str:
        user_bytes, user_mime = _read_image(user_image_path)
        garment_bytes, garment_mime = _read_image(garment_image_path)

        image = await self.service.generate_virtual_try_on(
            user_bytes,
            garment_bytes,
            background_preference=background_preference,
            preserve_background=False,
            user_mime_type=user_mime,
            clothing_mime_type=garment_mime,
        )

        os.makedirs(settings.storage_dir, exist_ok=True)
        out_path = os.path.join(settings.storage_dir, f"tryon_{uuid.uuid4().hex}{image.extension}")
        with open(out_path, "wb") as f:
            f.write(image.data)
        return out_path
