"""
Gateway request handlers

Image generation builds a request URL for the external text-to-image
service; the caller downloads the image itself so upstream rate limits apply
per end user. Chat completion is a placeholder that never calls an LLM.
"""

import random
import time
from typing import Any, Dict, Optional
from urllib.parse import quote, urlencode

from alexzo.core.errors import ValidationError

IMAGE_RESPONSE_MODEL = "alexzo-ai-v1"
MAX_PROMPT_LENGTH = 1000
MIN_DIMENSION = 256
MAX_DIMENSION = 1024
DEFAULT_DIMENSION = 512
SEED_RANGE = 1_000_000

# Characters JavaScript's encodeURIComponent leaves unescaped
URI_COMPONENT_SAFE = "-_.!~*'()"

PLACEHOLDER_COMPLETION = (
    "This is a demo response from the Alexzo API proxy. "
    "To enable full chat functionality, configure an LLM provider."
)


def _dimension(payload: Dict[str, Any], name: str) -> int:
    value = payload.get(name, DEFAULT_DIMENSION)
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError("Width and height must be integers")
    if value < MIN_DIMENSION or value > MAX_DIMENSION:
        raise ValidationError(
            f"Width and height must be between {MIN_DIMENSION} and {MAX_DIMENSION} pixels"
        )
    return value


def build_image_url(base_url: str, prompt: str, width: int, height: int,
                    seed: int, model: str) -> str:
    params = urlencode({
        "width": width,
        "height": height,
        "seed": seed,
        "nologo": "true",
        "enhance": "true",
        "model": model,
    })
    return f"{base_url.rstrip('/')}/{quote(prompt, safe=URI_COMPONENT_SAFE)}?{params}"


def generate_image(
    payload: Optional[Dict[str, Any]],
    *,
    image_base_url: str,
    image_model: str,
    user_ip: str,
    rng: Optional[random.Random] = None
) -> Dict[str, Any]:
    """
    Validate an image request and return the generation response

    Args:
        payload: Parsed JSON body (None when the body was missing or invalid)
        image_base_url: Prompt endpoint of the text-to-image service
        image_model: Model name passed to the service
        user_ip: Client identifier echoed in response metadata
        rng: Seed source, module-level random by default

    Raises:
        ValidationError: missing/oversized prompt or out-of-range dimensions
    """
    payload = payload or {}

    prompt = payload.get("prompt")
    if not isinstance(prompt, str) or not prompt.strip():
        raise ValidationError("Prompt is required")

    width = _dimension(payload, "width")
    height = _dimension(payload, "height")

    if len(prompt) > MAX_PROMPT_LENGTH:
        raise ValidationError(f"Prompt must be less than {MAX_PROMPT_LENGTH} characters")

    # Fresh seed per call: identical prompts yield different images
    seed = (rng or random).randrange(SEED_RANGE)

    return {
        "created": int(time.time()),
        "model": IMAGE_RESPONSE_MODEL,
        "data": [
            {
                "url": build_image_url(image_base_url, prompt, width, height, seed, image_model),
                "revised_prompt": prompt,
            }
        ],
        "meta": {
            "user_ip": user_ip,
            "note": "Image fetched directly from client to avoid server IP rate limits",
        },
    }


def chat_completion(payload: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Placeholder chat completion

    Validates the message list and answers with a fixed assistant message in
    the OpenAI response shape. No provider is called.
    """
    payload = payload or {}

    messages = payload.get("messages")
    if not isinstance(messages, list) or not messages:
        raise ValidationError("Messages array is required")

    model = payload.get("model") or "gpt-3.5-turbo"
    now = time.time()

    return {
        "id": f"chatcmpl-{int(now * 1000)}",
        "object": "chat.completion",
        "created": int(now),
        "model": model,
        "choices": [{
            "index": 0,
            "message": {
                "role": "assistant",
                "content": PLACEHOLDER_COMPLETION
            },
            "finish_reason": "stop"
        }],
        "usage": {
            "prompt_tokens": 0,
            "completion_tokens": 0,
            "total_tokens": 0
        }
    }
