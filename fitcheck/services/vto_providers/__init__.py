from ..gemini import GeminiService
from .base import TryOnProvider
from .gemini import GeminiTryOnProvider
from .mock import MockTryOnProvider


def get_provider(name: str | None, gemini: GeminiService | None = None) -> TryOnProvider:
    name = (name or ("gemini" if gemini else "mock")).lower()
    if name == "gemini":
        if gemini is None:
            raise RuntimeError("GEMINI_API_KEY not configured")
        return GeminiTryOnProvider(gemini)
    return MockTryOnProvider()
