"""Application configuration loaded from config.yaml and the environment."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

import yaml


@dataclass(frozen=True)
class LLMConfig:
    openai_model: str = "gpt-4o-mini"
    gemini_model: str = "gemini-2.5-flash"
    timeout: int = 120
    max_attempts: int = 1
    analysis_temperature: float = 0.3
    rewrite_temperature: float = 0.2
    max_output_tokens: int = 8000

    def __post_init__(self) -> None:
        if self.timeout < 1:
            raise ValueError(f"timeout must be >= 1, got {self.timeout}")
        if not 1 <= self.max_attempts <= 5:
            raise ValueError(f"max_attempts must be between 1 and 5, got {self.max_attempts}")
        for name in ("analysis_temperature", "rewrite_temperature"):
            value = getattr(self, name)
            if not 0.0 <= value <= 2.0:
                raise ValueError(f"{name} must be between 0 and 2, got {value}")
        if self.max_output_tokens < 1:
            raise ValueError(f"max_output_tokens must be >= 1, got {self.max_output_tokens}")

    def default_model(self, provider: str) -> str:
        return self.gemini_model if provider == "gemini" else self.openai_model


@dataclass(frozen=True)
class ServerConfig:
    host: str = "127.0.0.1"
    port: int = 8000
    cors_origins: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not 1 <= self.port <= 65535:
            raise ValueError(f"port must be between 1 and 65535, got {self.port}")
        # YAML gives lists
        object.__setattr__(self, "cors_origins", tuple(self.cors_origins))


@dataclass(frozen=True)
class AppConfig:
    llm: LLMConfig = field(default_factory=LLMConfig)
    server: ServerConfig = field(default_factory=ServerConfig)


@dataclass(frozen=True)
class ProviderCredentials:
    """Process-wide provider defaults, read once at startup.

    Request-supplied keys are resolved against this object but never stored
    in it.
    """

    openai_api_key: str | None = field(default=None, repr=False)
    gemini_api_key: str | None = field(default=None, repr=False)
    default_model: str | None = None

    def for_provider(self, provider: str) -> str | None:
        if provider == "gemini":
            return self.gemini_api_key
        return self.openai_api_key


def load_credentials(environ: Mapping[str, str] | None = None) -> ProviderCredentials:
    """Read provider keys and the default model id from the environment."""
    env = os.environ if environ is None else environ
    return ProviderCredentials(
        openai_api_key=env.get("OPENAI_API_KEY") or None,
        gemini_api_key=env.get("GEMINI_API_KEY") or None,
        default_model=env.get("RESUME_ANALYZER_DEFAULT_MODEL") or None,
    )


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load config from YAML file, falling back to defaults."""
    if path is None:
        # Look for config.yaml relative to the project root
        candidates = [
            Path.cwd() / "config.yaml",
            Path(__file__).resolve().parent.parent.parent / "config.yaml",
        ]
        for c in candidates:
            if c.exists():
                path = c
                break

    raw: dict = {}
    if path is not None:
        p = Path(path)
        if p.exists():
            raw = yaml.safe_load(p.read_text()) or {}

    return AppConfig(
        llm=LLMConfig(**raw.get("llm", {})),
        server=ServerConfig(**raw.get("server", {})),
    )
