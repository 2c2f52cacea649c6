from __future__ import annotations
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional
from dotenv import load_dotenv

from .config_loader import load_config, normalise_provider
from .core.errors import SecretNotFound
from .providers.echo import EchoEndpoint
from .resilience.resilient_client import (
    DEFAULT_PROMPT,
    EndpointConfig,
    ResilientInferenceClient,
    RetryPolicy,
)
from .secrets.sources import resolve_api_key

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    level = os.getenv("LOG_LEVEL") or level or "INFO"
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


def load_prompt() -> str:
    prompt_path = Path(__file__).resolve().parent / "prompts" / "alt_text.txt"
    return prompt_path.read_text(encoding="utf-8").strip() if prompt_path.exists() else DEFAULT_PROMPT


def build_policy(cfg: Dict[str, Any]) -> RetryPolicy:
    retry = cfg["retry"]
    return RetryPolicy(
        max_attempts=int(retry["max_attempts"]),
        base_delay=float(retry["base_delay"]),
        max_delay=retry.get("max_delay", 30.0),
        jitter=float(retry.get("jitter", 0.0)),
    )


def build_client(cfg: Dict[str, Any], *, sleep=None) -> ResilientInferenceClient:
    """
    Composition root: turn a loaded config into a ResilientInferenceClient.
    'gemini' talks to the real endpoint with a resolved key; 'echo' routes the
    same client through an in-process transport.
    """
    endpoint_cfg = cfg["endpoint"]
    provider = endpoint_cfg["provider"]

    transport = None
    api_key = ""
    if provider == "echo":
        transport = EchoEndpoint().transport()
    else:
        secrets_cfg = cfg.get("secrets") or {}
        key_name = secrets_cfg.get("key_name", "GEMINI_API_KEY")
        api_key = resolve_api_key(key_name, secrets_cfg.get("method", "env")) or ""
        if not api_key:
            raise SecretNotFound(f"No API key for '{provider}' (looked up {key_name})")

    endpoint = EndpointConfig(
        model=endpoint_cfg["model"],
        base_url=endpoint_cfg["base_url"],
        api_key=api_key,
        timeout=endpoint_cfg.get("timeout", 60.0),
        prompt=load_prompt(),
    )
    kwargs = {"transport": transport}
    if sleep is not None:
        kwargs["sleep"] = sleep
    logger.debug("Building %s client for model %s", provider, endpoint.model)
    return ResilientInferenceClient(endpoint, build_policy(cfg), **kwargs)


def build_app(config_path: Path, provider: Optional[str] = None) -> Dict[str, Any]:
    """
    Load .env and YAML, configure logging, build the client.
    Returns: dict with cfg and client.
    """
    load_dotenv()
    cfg = load_config(config_path)
    if provider:
        cfg["endpoint"]["provider"] = normalise_provider(provider)
    configure_logging((cfg.get("logging") or {}).get("level"))
    return {"cfg": cfg, "client": build_client(cfg)}
