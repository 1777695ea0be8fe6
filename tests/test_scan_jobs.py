"""
Tests for the background scan job runner.
"""

import asyncio
import logging

from sandwich_scanner.app.application.services.scan_jobs import ScanJobRunner


def test_wait_returns_after_all_jobs():
    finished = []

    async def job(n):
        await asyncio.sleep(0.01 * n)
        finished.append(n)

    async def run():
        runner = ScanJobRunner()
        for n in (3, 1, 2):
            runner.start(job(n), name=f"job-{n}")
        assert runner.running == 3
        await runner.wait()
        return runner

    runner = asyncio.run(run())

    assert sorted(finished) == [1, 2, 3]
    assert runner.running == 0


def test_crashed_job_is_logged(caplog):
    async def boom():
        raise RuntimeError("boom")

    async def run():
        runner = ScanJobRunner()
        runner.start(boom(), name="scan:ethereum:0xpair:1")
        await runner.wait()

    with caplog.at_level(logging.ERROR):
        asyncio.run(run())

    records = [r for r in caplog.records if "Scan job crashed" in r.getMessage()]
    assert len(records) == 1
    assert "scan:ethereum:0xpair:1" in records[0].getMessage()
    assert isinstance(records[0].exc_info[1], RuntimeError)
