import base64
import logging
import mimetypes
from pathlib import Path

from kharcha.config import settings

logger = logging.getLogger(__name__)

_api_client = None

SDK_MODEL_MAP = {
    "sonnet": "claude-sonnet-4-5-20250929",
    "haiku": "claude-haiku-4-5-20251001",
    "opus": "claude-opus-4-5-20251101",
}


class ClaudeUnavailable(RuntimeError):
    pass


def _get_api_client():
    global _api_client
    if _api_client is None:
        if settings.anthropic_api_key is None:
            raise ClaudeUnavailable("ANTHROPIC_API_KEY is not configured")
        import anthropic

        _api_client = anthropic.AsyncAnthropic(api_key=settings.anthropic_api_key, timeout=settings.claude_timeout)
    return _api_client


def _resolve_model() -> str:
    return SDK_MODEL_MAP.get(settings.claude_model, settings.claude_model)


def _image_media_type(path: str) -> str:
    mime, _ = mimetypes.guess_type(path)
    return mime or "image/jpeg"


async def ask_claude(prompt: str, system_prompt: str = "") -> str:
    client = _get_api_client()
    kwargs: dict = {
        "model": _resolve_model(),
        "max_tokens": 1024,
        "messages": [{"role": "user", "content": prompt}],
    }
    if system_prompt:
        kwargs["system"] = system_prompt

    response = await client.messages.create(**kwargs)
    return response.content[0].text


async def ask_claude_structured(
    prompt: str,
    json_schema: dict,
    system_prompt: str = "",
    image_path: str | None = None,
) -> dict:
    client = _get_api_client()

    content: list[dict] = []
    if image_path:
        image_data = Path(image_path).read_bytes()
        content.append(
            {
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": _image_media_type(image_path),
                    "data": base64.standard_b64encode(image_data).decode(),
                },
            }
        )
    content.append({"type": "text", "text": prompt})

    tool_name = "structured_output"
    tools = [
        {
            "name": tool_name,
            "description": "Return the structured output matching the schema.",
            "input_schema": json_schema,
        }
    ]

    kwargs: dict = {
        "model": _resolve_model(),
        "max_tokens": 2048,
        "messages": [{"role": "user", "content": content}],
        "tools": tools,
        "tool_choice": {"type": "tool", "name": tool_name},
    }
    if system_prompt:
        kwargs["system"] = system_prompt

    response = await client.messages.create(**kwargs)

    for block in response.content:
        if block.type == "tool_use" and block.name == tool_name:
            logger.debug("Claude structured output: %s", str(block.input)[:500])
            return block.input

    raise RuntimeError(f"Claude returned no tool_use block. Response: {str(response.content)[:300]}")
