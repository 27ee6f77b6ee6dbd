import os
from PIL import Image
import uuid
from ...config import settings


class MockTryOnProvider:
    name = "mock"

    async def generate(self, user_image_path: str, garment_image_path: str, background_preference: str | None = None) -> str:
        os.makedirs(settings.storage_dir, exist_ok=True)
        out_path = os.path.join(settings.storage_dir, f"tryon_{uuid.uuid4().hex}.jpg")
        try:
            user_img = Image.open(user_image_path).convert("RGB")
            garment_img = Image.open(garment_image_path).convert("RGB")
        except OSError:
            # Unreadable input still yields a placeholder so the flow can be exercised
            Image.new("RGB", (512, 512), color=(200, 200, 200)).save(out_path, format="JPEG")
            return out_path

        # Scale the garment to the user's height and place it alongside
        target_h = user_img.height
        ratio = target_h / max(1, garment_img.height)
        garment_resized = garment_img.resize((max(1, int(garment_img.width * ratio)), target_h))

        canvas = Image.new("RGB", (user_img.width + garment_resized.width, target_h), color=(240, 240, 240))
        canvas.paste(user_img, (0, 0))
        canvas.paste(garment_resized, (user_img.width, 0))
        canvas.save(out_path, format="JPEG", quality=90)
        return out_path
