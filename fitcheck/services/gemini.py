"""Gemini client wrapper for try-on, image edits and garment analysis.

One ``genai.Client`` is created at startup (see ``create_gemini_service``) and
passed into ``GeminiService``; call sites receive the service explicitly
through a FastAPI dependency.
"""
import base64
import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import structlog
from google import genai
from google.genai import types

from ..config import Settings


logger = structlog.get_logger("fitcheck")


IMAGE_TEMPERATURE = 0.6
IMAGE_TOP_P = 0.95
IMAGE_TOP_K = 40
MAX_OUTPUT_TOKENS = 8192

DEFAULT_SUGGESTION_TEXT = "Mix and match based on color coordination"


class GenerationError(RuntimeError):
    pass


@dataclass
class GeneratedImage:
    mime_type: str
    data: bytes

    @property
    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{base64.b64encode(self.data).decode('ascii')}"

    @property
    def extension(self) -> str:
        subtype = self.mime_type.split("/")[-1].lower()
        return ".jpg" if subtype in ("jpeg", "jpg") else f".{subtype}"


def _enum_name(value: Any) -> str:
    return str(getattr(value, "value", value))


def _try_on_prompt(background_preference: str | None, preserve_background: bool) -> str:
    background_line = f"- Background preference: {background_preference}\n" if background_preference else ""
    background_rule = (
        "- Preserve the original background from Image A"
        if preserve_background
        else "- Generate a clean, neutral background suitable for fashion photography"
    )
    return f"""You are an expert fashion AI specializing in virtual try-on.

TASK: Generate a photorealistic image of the person from Image A wearing the clothing item from Image B.

INPUTS:
- Image A: Photo of a person (preserve their exact identity, pose, and body shape)
- Image B: Clothing item (preserve exact color, pattern, texture, and design)
{background_line}
REQUIREMENTS:
1. IDENTITY PRESERVATION:
   - Keep the exact facial features, skin tone, hair and expression
   - Keep visible unique features such as tattoos and jewelry
2. GARMENT FIDELITY:
   - Keep the exact color, pattern, texture and design details, including logos and prints
3. REALISTIC INTEGRATION:
   - Natural draping and fit for the body shape and pose
   - Proper scaling to body proportions with natural shadows and highlights
4. BACKGROUND:
   {background_rule}
5. LIGHTING:
   - Consistent lighting and color temperature across person and garment

OUTPUT: Generate ONLY the final image. Do not include text."""


def _measurements_prompt(category: str | None) -> str:
    return f"""Analyze this {category or 'clothing'} item and extract:

1. Visible size labels or tags
2. Estimated measurements based on proportions (in cm):
   - For tops: chest, length, shoulder, sleeve
   - For bottoms: waist, hips, inseam, rise
   - For dresses: bust, waist, hips, length
3. Fit type (slim, regular, relaxed, oversized)
4. Material composition if visible

Return as JSON with this structure:
{{
  "size": "detected size or null",
  "measurements": {{
    "chest": number or null,
    "waist": number or null,
    "length": number or null
  }},
  "fit": "slim/regular/relaxed/oversized",
  "material": "detected material or null"
}}"""


class GeminiService:
    def __init__(self, client: Any, image_model: str, text_model: str) -> None:
        self.client = client
        self.image_model = image_model
        self.text_model = text_model

    def _image_config(self) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            temperature=IMAGE_TEMPERATURE,
            top_p=IMAGE_TOP_P,
            top_k=IMAGE_TOP_K,
            max_output_tokens=MAX_OUTPUT_TOKENS,
            response_modalities=["TEXT", "IMAGE"],
        )

    def _json_config(self) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            temperature=IMAGE_TEMPERATURE,
            top_p=IMAGE_TOP_P,
            top_k=IMAGE_TOP_K,
            max_output_tokens=MAX_OUTPUT_TOKENS,
            response_mime_type="application/json",
        )

    async def _generate(self, model: str, parts: List[types.Part], config: types.GenerateContentConfig) -> Any:
        return await self.client.aio.models.generate_content(
            model=model,
            contents=[types.Content(role="user", parts=parts)],
            config=config,
        )

    @staticmethod
    def handle_image_response(response: Any, context: str) -> GeneratedImage:
        feedback = getattr(response, "prompt_feedback", None)
        block_reason = getattr(feedback, "block_reason", None) if feedback else None
        if block_reason:
            message = getattr(feedback, "block_reason_message", None) or ""
            raise GenerationError(f"Request blocked: {_enum_name(block_reason)}. {message}".strip())

        candidates = getattr(response, "candidates", None) or []
        candidate = candidates[0] if candidates else None
        content = getattr(candidate, "content", None)
        for part in getattr(content, "parts", None) or []:
            inline = getattr(part, "inline_data", None)
            if inline is not None and inline.data:
                data = inline.data
                if isinstance(data, str):
                    data = base64.b64decode(data)
                return GeneratedImage(mime_type=inline.mime_type or "image/png", data=data)

        finish_reason = getattr(candidate, "finish_reason", None)
        if finish_reason and _enum_name(finish_reason) != "STOP":
            raise GenerationError(f"Generation stopped for {context}: {_enum_name(finish_reason)}")

        raise GenerationError(f"No image generated for {context}")

    async def generate_virtual_try_on(
        self,
        user_image: bytes,
        clothing_image: bytes,
        background_preference: str | None = None,
        preserve_background: bool = False,
        user_mime_type: str = "image/jpeg",
        clothing_mime_type: str = "image/jpeg",
    ) -> GeneratedImage:
        parts = [
            types.Part.from_bytes(data=user_image, mime_type=user_mime_type),
            types.Part.from_bytes(data=clothing_image, mime_type=clothing_mime_type),
            types.Part.from_text(text=_try_on_prompt(background_preference, preserve_background)),
        ]
        response = await self._generate(self.image_model, parts, self._image_config())
        return self.handle_image_response(response, "virtual try-on")

    async def generate_filtered_image(self, image: bytes, filter_prompt: str, mime_type: str = "image/jpeg") -> GeneratedImage:
        prompt = (
            f'Apply this stylistic filter to the image: "{filter_prompt}"\n\n'
            "Guidelines:\n"
            "- Apply the style uniformly across the entire image\n"
            "- Do not change composition or content\n"
            "- Maintain image quality and resolution\n"
            "- Output only the filtered image"
        )
        parts = [types.Part.from_bytes(data=image, mime_type=mime_type), types.Part.from_text(text=prompt)]
        response = await self._generate(self.image_model, parts, self._image_config())
        return self.handle_image_response(response, "filter")

    async def generate_edited_image(
        self,
        image: bytes,
        edit_prompt: str,
        hotspot: Optional[Dict[str, float]] = None,
        mime_type: str = "image/jpeg",
    ) -> GeneratedImage:
        if hotspot:
            prompt = (
                f'Make this localized edit: "{edit_prompt}"\n'
                f"Focus on the area around coordinates (x: {hotspot['x']}, y: {hotspot['y']})\n"
                "The edit must blend naturally with surroundings.\n"
                "Keep the rest of the image unchanged."
            )
        else:
            prompt = f'Make this global edit to the image: "{edit_prompt}"'
        parts = [types.Part.from_bytes(data=image, mime_type=mime_type), types.Part.from_text(text=prompt)]
        response = await self._generate(self.image_model, parts, self._image_config())
        return self.handle_image_response(response, "edit")

    async def extract_clothing_measurements(
        self, clothing_image: bytes, category: str | None = None, mime_type: str = "image/jpeg"
    ) -> Dict[str, Any]:
        parts = [
            types.Part.from_bytes(data=clothing_image, mime_type=mime_type),
            types.Part.from_text(text=_measurements_prompt(category)),
        ]
        response = await self._generate(self.text_model, parts, self._json_config())
        try:
            parsed = json.loads(response.text or "")
        except (TypeError, ValueError):
            logger.warning("measurement_response_unparseable", category=category)
            return {}
        return parsed if isinstance(parsed, dict) else {}

    async def generate_outfit_suggestion(
        self,
        items: List[Dict[str, str]],
        occasion: str | None = None,
        season: str | None = None,
    ) -> Dict[str, Any]:
        categories = ", ".join(item.get("category", "") for item in items)
        prompt = f"""As a fashion expert, suggest outfit combinations from these clothing items.

Context:
- Occasion: {occasion or 'casual everyday'}
- Season: {season or 'all seasons'}
- Items: {categories}

Return JSON with:
{{
  "suggestion": "Overall styling advice",
  "combinations": [
    {{
      "items": ["category1", "category2"],
      "reason": "Why this works"
    }}
  ]
}}"""
        response = await self._generate(self.text_model, [types.Part.from_text(text=prompt)], self._json_config())
        try:
            parsed = json.loads(response.text or "")
        except (TypeError, ValueError):
            return {"suggestion": DEFAULT_SUGGESTION_TEXT, "combinations": []}
        if not isinstance(parsed, dict) or "suggestion" not in parsed:
            return {"suggestion": DEFAULT_SUGGESTION_TEXT, "combinations": []}
        return parsed


def create_gemini_service(config: Settings) -> GeminiService | None:
    if not config.gemini_api_key:
        return None
    client = genai.Client(api_key=config.gemini_api_key)
    return GeminiService(client, image_model=config.gemini_image_model, text_model=config.gemini_text_model)
