from __future__ import annotations

import unittest
from datetime import datetime, timedelta, timezone

from creative_validator.preview.store import InMemoryPreviewStore
from creative_validator.scheduler.jobs import SWEEP_JOB_ID, build_scheduler, run_preview_sweep


class _ExplodingStore:
    def sweep(self) -> list[str]:
        raise OSError("disk gone")


class TestPreviewSweepJob(unittest.TestCase):
    def test_scheduler_registers_single_sweep_job(self) -> None:
        scheduler = build_scheduler(InMemoryPreviewStore(), 300)

        jobs = scheduler.get_jobs()

        self.assertEqual([job.id for job in jobs], [SWEEP_JOB_ID])
        self.assertEqual(jobs[0].trigger.interval, timedelta(seconds=300))
        self.assertEqual(jobs[0].max_instances, 1)
        self.assertFalse(scheduler.running)

    def test_sweep_removes_expired_sessions(self) -> None:
        now = [datetime(2026, 1, 1, tzinfo=timezone.utc)]
        store = InMemoryPreviewStore(ttl_seconds=10, clock=lambda: now[0])
        session_id = store.create()
        store.populate(session_id, entry_point_path="index.html", files={"index.html": b"x"})

        self.assertEqual(run_preview_sweep(store), [])
        now[0] += timedelta(seconds=11)
        self.assertEqual(run_preview_sweep(store), [session_id])
        self.assertEqual(run_preview_sweep(store), [])

    def test_sweep_failure_is_contained(self) -> None:
        with self.assertLogs("creative_validator.scheduler.jobs", level="WARNING"):
            self.assertEqual(run_preview_sweep(_ExplodingStore()), [])


if __name__ == "__main__":
    unittest.main()
