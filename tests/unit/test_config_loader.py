# tests/unit/test_config_loader.py

from __future__ import annotations
import sys
from pathlib import Path
import pytest
from textwrap import dedent

# Make "src" importable
sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from alttext.config_loader import load_config, ConfigError  # type: ignore


def write_yaml(p: Path, text: str) -> Path:
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(dedent(text).lstrip("\n").rstrip() + "\n", encoding="utf-8")
    return p


def test_load_config_ok(tmp_path: Path):
    cfg = write_yaml(
        tmp_path / "config" / "default.yaml",
        """
        endpoint: { provider: GEMINI, model: gemini-test, base_url: "https://x.test/v1beta" }
        retry: { max_attempts: 5, base_delay: 1, max_delay: null }
        """,
    )
    data = load_config(cfg)
    assert data["endpoint"]["provider"] == "gemini"   # normalised
    assert data["retry"]["max_delay"] is None


def test_shipped_default_config_loads():
    data = load_config(Path(__file__).resolve().parents[2] / "config" / "default.yaml")
    assert data["retry"]["max_attempts"] == 5
    assert data["retry"]["base_delay"] == 1.0


def test_load_config_missing_file(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


def test_load_config_missing_key(tmp_path: Path):
    cfg = write_yaml(
        tmp_path / "c.yaml",
        """
        endpoint: { model: gemini-test, base_url: "https://x.test" }   # missing provider
        retry: { max_attempts: 5, base_delay: 1.0 }
        """,
    )
    with pytest.raises(ConfigError):
        load_config(cfg)


@pytest.mark.parametrize("retry", [
    '{ max_attempts: "five", base_delay: 1.0 }',
    "{ max_attempts: true, base_delay: 1.0 }",
    "{ max_attempts: -1, base_delay: 1.0 }",
    "{ max_attempts: 5, base_delay: 0 }",
    "{ max_attempts: 5, base_delay: 2.0, max_delay: 1.0 }",
])
def test_load_config_bad_retry(tmp_path: Path, retry: str):
    cfg = write_yaml(
        tmp_path / "c.yaml",
        f"""
        endpoint: {{ provider: gemini, model: m, base_url: "https://x.test" }}
        retry: {retry}
        """,
    )
    with pytest.raises(ConfigError):
        load_config(cfg)


def test_load_config_unknown_provider(tmp_path: Path):
    cfg = write_yaml(
        tmp_path / "c.yaml",
        """
        endpoint: { provider: openai, model: m, base_url: "https://x.test" }
        retry: { max_attempts: 5, base_delay: 1.0 }
        """,
    )
    with pytest.raises(ConfigError):
        load_config(cfg)
