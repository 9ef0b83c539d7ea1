"""Run configuration: defaults, environment overrides, validation."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping

from .constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_HOST,
    DEFAULT_MAX_RETRIES,
    DEFAULT_PORT,
    DEFAULT_RETRY_DELAY_S,
    DEFAULT_WORKERS,
)


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    max_attempts: int = DEFAULT_MAX_RETRIES
    delay_s: float = DEFAULT_RETRY_DELAY_S

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1: {self.max_attempts}")
        if self.delay_s < 0:
            raise ValueError(f"delay_s must not be negative: {self.delay_s}")


@dataclass(frozen=True, slots=True)
class TransferConfig:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    root: str = "."
    chunk_size: int = DEFAULT_CHUNK_SIZE
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    workers: int = DEFAULT_WORKERS
    connect_timeout_s: float | None = None

    def __post_init__(self) -> None:
        if not self.host:
            raise ValueError("host must not be empty")
        if not 0 < self.port < 65536:
            raise ValueError(f"port out of range: {self.port}")
        if self.chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive: {self.chunk_size}")
        if self.workers < 1:
            raise ValueError(f"workers must be at least 1: {self.workers}")
        if self.connect_timeout_s is not None and self.connect_timeout_s <= 0:
            raise ValueError(f"connect_timeout_s must be positive: {self.connect_timeout_s}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "TransferConfig":
        """Build a config from ``FXFER_*`` variables, falling back to defaults.

        Malformed numbers raise ``ValueError``.
        """
        env = os.environ if environ is None else environ
        timeout = env.get("FXFER_CONNECT_TIMEOUT")
        return cls(
            host=env.get("FXFER_HOST", DEFAULT_HOST),
            port=int(env.get("FXFER_PORT", DEFAULT_PORT)),
            root=env.get("FXFER_ROOT", "."),
            chunk_size=int(env.get("FXFER_CHUNK_SIZE", DEFAULT_CHUNK_SIZE)),
            retry=RetryPolicy(
                max_attempts=int(env.get("FXFER_MAX_RETRIES", DEFAULT_MAX_RETRIES)),
                delay_s=float(env.get("FXFER_RETRY_DELAY", DEFAULT_RETRY_DELAY_S)),
            ),
            workers=int(env.get("FXFER_WORKERS", DEFAULT_WORKERS)),
            connect_timeout_s=float(timeout) if timeout else None,
        )
