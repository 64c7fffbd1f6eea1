"""Shared types for text-generation provider calls."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, Literal, Optional

AIProvider = Literal["openai", "openai-compatible", "ollama", "anthropic"]

AI_PROVIDERS: tuple[str, ...] = ("openai", "openai-compatible", "ollama", "anthropic")
DEFAULT_PROVIDER: AIProvider = "openai"


@dataclass(frozen=True)
class ResolveOptions:
    """Explicit per-call overrides; empty values defer to deployment settings."""

    provider: Optional[str] = None
    model: Optional[str] = None
    base_url: Optional[str] = None
    api_key: Optional[str] = None
    timeout_ms: Optional[int] = None


@dataclass(frozen=True)
class AIProviderConfig:
    provider: AIProvider
    model: str
    base_url: str
    api_key: str
    timeout_ms: int

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000


@dataclass
class AICompletionRequest:
    system: str
    prompt: str
    model: str = ""
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    json_mode: bool = False
    json_schema: Optional[Dict[str, Any]] = None
    cancel_event: Optional[asyncio.Event] = None


@dataclass(frozen=True)
class AICompletionResponse:
    text: str
    provider: AIProvider
