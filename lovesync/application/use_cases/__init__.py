"""Application use cases - orchestrate business operations."""

from .sync_loves import (
    SyncLovesCommand,
    SyncLovesUseCase,
    run_periodically,
)

__all__ = [
    "SyncLovesCommand",
    "SyncLovesUseCase",
    "run_periodically",
]
