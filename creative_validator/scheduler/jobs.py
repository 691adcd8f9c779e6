"""
creative_validator/scheduler/jobs.py

Active expiry of preview sessions.

Passive expiry (a read of a stale session) only cleans sessions someone
asks for; this interval job removes the rest. ``main._lifespan`` starts the
scheduler on boot and shuts it down on exit.
"""

from __future__ import annotations

import logging

from apscheduler.schedulers.background import BackgroundScheduler

from creative_validator.preview.store import PreviewStore

logger = logging.getLogger(__name__)

SWEEP_JOB_ID = "preview_sweep"


def run_preview_sweep(store: PreviewStore) -> list[str]:
    """
    Remove expired preview sessions and return their ids.

    A failing sweep is logged and retried on the next tick.
    """

    try:
        removed = store.sweep()
    except Exception as exc:  # noqa: BLE001
        logger.warning("Preview sweep failed: %s", exc)
        return []
    if removed:
        logger.info("Preview sweep removed %d expired session(s)", len(removed))
    return removed


def build_scheduler(store: PreviewStore, interval_seconds: int) -> BackgroundScheduler:
    """
    Un-started scheduler with the sweep registered; overlapping and missed runs collapse into one.
    """

    scheduler = BackgroundScheduler(timezone="UTC")
    scheduler.add_job(
        run_preview_sweep,
        "interval",
        seconds=interval_seconds,
        args=[store],
        id=SWEEP_JOB_ID,
        name="Expired preview session sweep",
        coalesce=True,
        max_instances=1,
    )
    return scheduler
