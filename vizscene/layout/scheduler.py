"""Cooperative per-frame driver for force simulations.

The scheduler ticks a simulation once per frame on the running asyncio loop
and yields between ticks, so pointer handlers scheduled on the same loop are
serviced while the layout is still moving.
"""

from __future__ import annotations

import asyncio

from ..core.enums import SimulationStatus
from ..core.logging_config import get_logger
from .force import ForceSimulation

logger = get_logger(__name__)

FRAME_INTERVAL = 1 / 60


class FrameScheduler:
    """Runs ``simulation.tick()`` once per frame until the simulation stops.

    Args:
        simulation: Simulation to drive
        frame_interval: Seconds to yield between ticks (0 yields without waiting)
        max_ticks: Optional cap on ticks per run
    """

    def __init__(
        self,
        simulation: ForceSimulation,
        frame_interval: float = FRAME_INTERVAL,
        max_ticks: int | None = None,
    ):
        self.simulation = simulation
        self.frame_interval = frame_interval
        self.max_ticks = max_ticks
        self._task: asyncio.Task[int] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run(self) -> int:
        """Tick until the simulation stops; returns the number of ticks run."""
        sim = self.simulation
        count = 0
        while sim.status is not SimulationStatus.STOPPED:
            if self.max_ticks is not None and count >= self.max_ticks:
                break
            sim.tick()
            count += 1
            await asyncio.sleep(self.frame_interval)
        logger.debug("Frame loop finished", extra={"ticks": count, "status": sim.status.value})
        return count

    def start(self) -> asyncio.Task[int]:
        """Schedule the frame loop on the running loop (no-op if already running)."""
        if not self.running:
            self._task = asyncio.get_running_loop().create_task(self.run())
        return self._task

    def wake(self) -> asyncio.Task[int] | None:
        """Resume ticking after a drag reheated a naturally settled simulation."""
        if self.simulation.status is SimulationStatus.STOPPED:
            return None
        return self.start()

    async def stop(self) -> None:
        """Cancel the simulation and wait for the loop to exit."""
        self.simulation.stop()
        if self._task is not None:
            await self._task


async def drive(simulation: ForceSimulation, frame_interval: float = 0.0) -> int:
    """Run a simulation to completion cooperatively."""
    return await FrameScheduler(simulation, frame_interval).run()
