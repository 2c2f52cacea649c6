# tests/unit/test_bootstrap.py

from __future__ import annotations
import asyncio
import sys
from pathlib import Path
import pytest

# Ensure "src" is importable
sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from alttext.bootstrap import build_app, build_client, load_prompt
from alttext.config_loader import ConfigError
from alttext.core.errors import SecretNotFound
from alttext.core.models import ImagePayload
from alttext.resilience.resilient_client import ResilientInferenceClient


def _cfg(provider="gemini", **retry):
    return {
        "endpoint": {"provider": provider, "model": "gemini-test", "base_url": "https://x.test/v1beta"},
        "retry": {"max_attempts": 5, "base_delay": 1.0, **retry},
        "secrets": {"method": "env", "key_name": "GEMINI_API_KEY"},
    }


def test_build_client_resolves_key(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "g-key")
    client = build_client(_cfg(max_delay=None))
    assert isinstance(client, ResilientInferenceClient)
    assert client.endpoint.api_key == "g-key"
    assert client.endpoint.prompt == load_prompt()
    assert client.policy.max_attempts == 5
    assert client.policy.max_delay is None


def test_build_client_default_delay_cap(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "g-key")
    assert build_client(_cfg()).policy.max_delay == 30.0


def test_build_client_missing_key(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("GEMINI", raising=False)
    with pytest.raises(SecretNotFound):
        build_client(_cfg())


def test_echo_client_runs_offline(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    client = build_client(_cfg(provider="echo"))

    async def go():
        async with client:
            return await client.infer(ImagePayload(data="AAAA", mime_type="image/png"))

    result = asyncio.run(go())
    assert result.ok
    assert result.description.startswith("Lorem ipsum")
    assert result.attempts == 1


def test_build_app_provider_override(tmp_path: Path):
    cfg = tmp_path / "default.yaml"
    cfg.write_text(
        """
endpoint:
  provider: gemini
  model: gemini-test
  base_url: https://x.test/v1beta
retry:
  max_attempts: 3
  base_delay: 0.5
logging:
  level: WARNING
""",
        encoding="utf-8",
    )
    ctx = build_app(cfg, provider="ECHO")
    assert ctx["cfg"]["endpoint"]["provider"] == "echo"
    assert ctx["client"].policy.max_attempts == 3

    with pytest.raises(ConfigError):
        build_app(cfg, provider="nope")
