from typing import Protocol


class TryOnProvider(Protocol):
    name: str

    async def generate(self, user_image_path: str, garment_image_path: str, background_preference: str | None = None) -> str:  # returns output file path
        ...
