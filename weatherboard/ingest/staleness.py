"""Freshness checks for cached weather entries."""

from weatherboard.models.common import epoch_ms_now


def is_stale(fetched_at_ms: int | None, window_ms: int, now_ms: int | None = None) -> bool:
    """Check if an entry fetched at `fetched_at_ms` is older than the window.

    Never-fetched entries are stale. Exactly `window_ms` old is still fresh.
    """
    if fetched_at_ms is None:
        return True
    if now_ms is None:
        now_ms = epoch_ms_now()
    return now_ms - fetched_at_ms > window_ms
