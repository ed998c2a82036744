"""Tests for the cooperative frame scheduler."""

from __future__ import annotations

import asyncio

import pytest

from vizscene.core.enums import SimulationStatus
from vizscene.layout import ForceSimulation, FrameScheduler, drive


def triangle() -> ForceSimulation:
    return ForceSimulation.from_records(
        [{"source": "a", "target": "b"}, {"source": "b", "target": "c"}, {"source": "c", "target": "a"}]
    )


@pytest.mark.asyncio
async def test_drive_runs_to_rest() -> None:
    sim = triangle()
    ticks = await drive(sim)
    assert sim.status is SimulationStatus.STOPPED
    assert ticks == sim.ticks
    assert 295 <= ticks <= 305


@pytest.mark.asyncio
async def test_max_ticks_caps_a_run() -> None:
    sim = triangle()
    ticks = await FrameScheduler(sim, frame_interval=0, max_ticks=10).run()
    assert ticks == 10
    assert sim.status is SimulationStatus.SETTLING


@pytest.mark.asyncio
async def test_other_tasks_run_between_frames() -> None:
    """Test that pointer handlers scheduled on the loop run while the layout moves."""
    sim = triangle()
    scheduler = FrameScheduler(sim, frame_interval=0)
    seen: list[int] = []

    async def pointer() -> None:
        await asyncio.sleep(0)
        seen.append(sim.ticks)

    task = scheduler.start()
    await pointer()
    await task
    assert seen and seen[0] < sim.ticks


@pytest.mark.asyncio
async def test_stop_cancels_and_waits() -> None:
    sim = triangle()
    scheduler = FrameScheduler(sim, frame_interval=0)
    scheduler.start()
    await asyncio.sleep(0)
    await scheduler.stop()
    assert not scheduler.running
    assert sim.cancelled
    assert sim.ticks < 300
    assert sim.tick() is None


@pytest.mark.asyncio
async def test_start_is_idempotent_and_wake_restarts_after_drag() -> None:
    sim = triangle()
    scheduler = FrameScheduler(sim, frame_interval=0, max_ticks=5)
    first = scheduler.start()
    assert scheduler.start() is first
    await first

    sim.drag_start("a", 10, 10)
    task = scheduler.wake()
    assert task is not None and task is not first
    await task
    assert sim.node("a").x == 10


@pytest.mark.asyncio
async def test_wake_ignores_stopped_simulation() -> None:
    sim = triangle()
    sim.stop()
    assert FrameScheduler(sim).wake() is None
