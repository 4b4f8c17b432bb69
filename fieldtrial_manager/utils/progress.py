"""Utility helpers for consistent progress reporting."""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Iterator, TypeVar

from tqdm.auto import tqdm

logger = logging.getLogger(__name__)

TItem = TypeVar("TItem")


def create_progress_bar(
    enabled: bool,
    total: int,
    desc: str,
    *,
    unit: str = "item",
) -> tqdm | None:
    """Create a tqdm progress bar if console display is enabled."""
    if not enabled or total <= 0:
        return None
    return tqdm(
        total=total,
        desc=desc,
        leave=False,
        unit=unit,
    )


def emit_progress(
    hook: Callable[[int], None] | None,
    step: int = 1,
) -> None:
    """Invoke a progress hook while ignoring consumer failures."""
    if hook is None or step <= 0:
        return
    try:
        hook(step)
    except Exception:  # pragma: no cover - diagnostic only
        logger.debug("Progress hook raised an exception.", exc_info=True)


def progress_callback(progress: tqdm | None) -> Callable[[int], None] | None:
    """Create a hook that updates the provided tqdm progress bar."""
    if progress is None:
        return None

    def _hook(increment: int = 1) -> None:
        if increment <= 0:
            return
        progress.update(increment)

    return _hook


def track(
    items: Iterable[TItem],
    *,
    total: int,
    desc: str,
    enabled: bool,
    unit: str = "item",
) -> Iterator[TItem]:
    """Yield ``items`` while advancing a progress bar after each one."""
    progress = create_progress_bar(enabled, total, desc, unit=unit)
    hook = progress_callback(progress)
    try:
        for item in items:
            yield item
            emit_progress(hook)
    finally:
        if progress is not None:
            progress.close()


__all__ = ["create_progress_bar", "emit_progress", "progress_callback", "track"]
