# src/alttext/secrets/sources.py

from __future__ import annotations
from typing import Callable, Dict, Iterable, Optional, Union
import logging
import os

import keyring
from keyring.errors import KeyringError

logger = logging.getLogger(__name__)

KEYRING_SERVICE = "alttext"


def from_env(key_name: str) -> Optional[str]:
    val = os.getenv(key_name)
    return val.strip() if val else None


def from_keyring(key_name: str) -> Optional[str]:
    # stored with: keyring set alttext GEMINI_API_KEY
    try:
        val = keyring.get_password(KEYRING_SERVICE, key_name)
    except KeyringError as e:
        logger.debug("Keyring lookup for %r failed: %s", key_name, e)
        return None
    return val.strip() if val else None


LOOKUPS: Dict[str, Callable[[str], Optional[str]]] = {
    "env": from_env,
    "keyring": from_keyring,
}


def resolve_api_key(key_name: str, method: Union[str, Iterable[str]] = "env") -> Optional[str]:
    """Try each configured method in order; first non-empty value wins."""
    methods = [method] if isinstance(method, str) else list(method)
    lookups = []
    for m in methods:
        name = str(m).strip().lower()
        if name not in LOOKUPS:
            raise ValueError(f"Unknown secrets method '{m}'. Allowed: {sorted(LOOKUPS)}")
        lookups.append(LOOKUPS[name])

    for lookup in lookups:
        val = lookup(key_name)
        if val:
            return val
    return None
