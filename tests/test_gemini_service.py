import base64
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from fitcheck.config import Settings
from fitcheck.services.gemini import GeminiService, GenerationError, create_gemini_service


PNG_BYTES = b"\x89PNG\r\n\x1a\nfake"


def image_response(data=PNG_BYTES, mime_type="image/png"):
    part = SimpleNamespace(text=None, inline_data=SimpleNamespace(mime_type=mime_type, data=data))
    candidate = SimpleNamespace(content=SimpleNamespace(parts=[part]), finish_reason="STOP")
    return SimpleNamespace(prompt_feedback=None, candidates=[candidate])


def text_response(text, finish_reason="STOP"):
    part = SimpleNamespace(text=text, inline_data=None)
    candidate = SimpleNamespace(content=SimpleNamespace(parts=[part]), finish_reason=finish_reason)
    return SimpleNamespace(prompt_feedback=None, candidates=[candidate], text=text)


def make_service(response):
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock(return_value=response)
    return GeminiService(client, image_model="image-model", text_model="text-model"), client


@pytest.mark.asyncio
async def test_try_on_returns_inline_image():
    service, client = make_service(image_response())
    image = await service.generate_virtual_try_on(b"user", b"clothes", background_preference="studio")
    assert image.mime_type == "image/png"
    assert image.data == PNG_BYTES
    assert image.data_url == "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode()
    assert image.extension == ".png"

    kwargs = client.aio.models.generate_content.call_args.kwargs
    assert kwargs["model"] == "image-model"
    parts = kwargs["contents"][0].parts
    assert len(parts) == 3
    assert "Background preference: studio" in parts[2].text
    assert kwargs["config"].temperature == 0.6


@pytest.mark.asyncio
async def test_try_on_decodes_base64_string_payload():
    encoded = base64.b64encode(PNG_BYTES).decode()
    service, _ = make_service(image_response(data=encoded, mime_type="image/jpeg"))
    image = await service.generate_virtual_try_on(b"user", b"clothes")
    assert image.data == PNG_BYTES
    assert image.extension == ".jpg"


@pytest.mark.asyncio
async def test_blocked_prompt_raises():
    response = SimpleNamespace(
        prompt_feedback=SimpleNamespace(block_reason="SAFETY", block_reason_message="unsafe content"),
        candidates=[],
    )
    service, _ = make_service(response)
    with pytest.raises(GenerationError, match="Request blocked: SAFETY. unsafe content"):
        await service.generate_virtual_try_on(b"user", b"clothes")


@pytest.mark.asyncio
async def test_non_stop_finish_reason_raises():
    service, _ = make_service(text_response("sorry", finish_reason="IMAGE_SAFETY"))
    with pytest.raises(GenerationError, match="Generation stopped for filter: IMAGE_SAFETY"):
        await service.generate_filtered_image(b"img", "sepia")


@pytest.mark.asyncio
async def test_text_only_reply_raises_no_image():
    service, _ = make_service(text_response("here is a description"))
    with pytest.raises(GenerationError, match="No image generated for edit"):
        await service.generate_edited_image(b"img", "remove the hat")


@pytest.mark.asyncio
async def test_edit_with_hotspot_mentions_coordinates():
    service, client = make_service(image_response())
    await service.generate_edited_image(b"img", "add a pocket", hotspot={"x": 10, "y": 20})
    prompt = client.aio.models.generate_content.call_args.kwargs["contents"][0].parts[1].text
    assert "(x: 10, y: 20)" in prompt


@pytest.mark.asyncio
async def test_extract_measurements_parses_json():
    payload = {"size": "M", "measurements": {"chest": 104, "length": 70}, "fit": "regular", "material": "cotton"}
    service, client = make_service(text_response(json.dumps(payload)))
    result = await service.extract_clothing_measurements(b"img", "shirt")
    assert result == payload
    kwargs = client.aio.models.generate_content.call_args.kwargs
    assert kwargs["model"] == "text-model"
    assert kwargs["config"].response_mime_type == "application/json"
    assert "Analyze this shirt item" in kwargs["contents"][0].parts[1].text


@pytest.mark.asyncio
async def test_extract_measurements_unparseable_returns_empty():
    service, _ = make_service(text_response("not json"))
    assert await service.extract_clothing_measurements(b"img") == {}


@pytest.mark.asyncio
async def test_outfit_suggestion_falls_back_on_bad_json():
    service, _ = make_service(text_response("```oops"))
    result = await service.generate_outfit_suggestion([{"image_url": "a", "category": "shirt"}])
    assert result == {"suggestion": "Mix and match based on color coordination", "combinations": []}


@pytest.mark.asyncio
async def test_outfit_suggestion_passes_context():
    reply = {"suggestion": "Layer it", "combinations": [{"items": ["shirt", "jacket"], "reason": "contrast"}]}
    service, client = make_service(text_response(json.dumps(reply)))
    result = await service.generate_outfit_suggestion(
        [{"image_url": "a", "category": "shirt"}, {"image_url": "b", "category": "jacket"}],
        occasion="office",
    )
    assert result == reply
    prompt = client.aio.models.generate_content.call_args.kwargs["contents"][0].parts[0].text
    assert "Occasion: office" in prompt
    assert "Season: all seasons" in prompt
    assert "Items: shirt, jacket" in prompt


def test_no_api_key_means_no_service():
    assert create_gemini_service(Settings(gemini_api_key=None)) is None
