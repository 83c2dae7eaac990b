from unittest.mock import AsyncMock, MagicMock, patch

import pytest

import kharcha.claude.client as client_mod
from kharcha.claude.client import ClaudeUnavailable, _resolve_model, ask_claude, ask_claude_structured


def _mock_text_response(text: str):
    block = MagicMock()
    block.text = text
    block.type = "text"
    response = MagicMock()
    response.content = [block]
    return response


def _mock_tool_use_response(tool_input: dict, tool_name: str = "structured_output"):
    block = MagicMock()
    block.type = "tool_use"
    block.name = tool_name
    block.input = tool_input
    response = MagicMock()
    response.content = [block]
    return response


def test_missing_api_key_raises(monkeypatch):
    monkeypatch.setattr(client_mod, "_api_client", None)
    monkeypatch.setattr(client_mod.settings, "anthropic_api_key", None)
    with pytest.raises(ClaudeUnavailable):
        client_mod._get_api_client()


def test_resolve_model_alias(monkeypatch):
    monkeypatch.setattr(client_mod.settings, "claude_model", "haiku")
    assert _resolve_model() == "claude-haiku-4-5-20251001"
    monkeypatch.setattr(client_mod.settings, "claude_model", "custom-model")
    assert _resolve_model() == "custom-model"


@patch("kharcha.claude.client._get_api_client")
async def test_ask_claude_returns_text(mock_get_client):
    mock_client = AsyncMock()
    mock_client.messages.create.return_value = _mock_text_response("Groceries")
    mock_get_client.return_value = mock_client

    assert await ask_claude("categorize milk", system_prompt="be brief") == "Groceries"
    call_kwargs = mock_client.messages.create.call_args[1]
    assert call_kwargs["system"] == "be brief"


@patch("kharcha.claude.client._get_api_client")
async def test_structured_returns_tool_input(mock_get_client):
    mock_client = AsyncMock()
    mock_client.messages.create.return_value = _mock_tool_use_response({"amount": 42.0})
    mock_get_client.return_value = mock_client

    result = await ask_claude_structured("parse", {"type": "object"})
    assert result == {"amount": 42.0}
    call_kwargs = mock_client.messages.create.call_args[1]
    assert call_kwargs["tool_choice"] == {"type": "tool", "name": "structured_output"}
    assert "system" not in call_kwargs


@patch("kharcha.claude.client._get_api_client")
async def test_structured_with_image(mock_get_client, tmp_path):
    mock_client = AsyncMock()
    mock_client.messages.create.return_value = _mock_tool_use_response({"amount": 10.0})
    mock_get_client.return_value = mock_client

    image = tmp_path / "receipt.png"
    image.write_bytes(b"\x89PNG fake")

    await ask_claude_structured("parse receipt", {"type": "object"}, image_path=str(image))
    content = mock_client.messages.create.call_args[1]["messages"][0]["content"]
    assert content[0]["type"] == "image"
    assert content[0]["source"]["media_type"] == "image/png"
    assert content[1] == {"type": "text", "text": "parse receipt"}


@patch("kharcha.claude.client._get_api_client")
async def test_structured_without_tool_use_raises(mock_get_client):
    mock_client = AsyncMock()
    mock_client.messages.create.return_value = _mock_text_response("no tool use here")
    mock_get_client.return_value = mock_client

    with pytest.raises(RuntimeError, match="no tool_use block"):
        await ask_claude_structured("test", {"type": "object"})
