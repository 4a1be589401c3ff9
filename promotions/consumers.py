import asyncio
import contextlib

from channels.generic.websocket import AsyncJsonWebsocketConsumer

from promotions.services.metrics import COUNTERS, get_metrics


class PromotionMetricsConsumer(AsyncJsonWebsocketConsumer):
    """
    Pushes the promotion counters (runs, promoted, excluded, errors, skipped)
    to connected clients every few seconds.
    """

    interval = 3

    async def connect(self):
        await self.accept()
        self._running = True
        await self.send_metrics()
        self._task = asyncio.create_task(self._loop())

    async def disconnect(self, close_code):
        self._running = False
        if hasattr(self, "_task"):
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task

    async def _loop(self):
        while self._running:
            await asyncio.sleep(self.interval)
            await self.send_metrics()

    async def send_metrics(self):
        metrics = get_metrics()
        if metrics is None:
            await self.send_json(
                {
                    "type": "metrics",
                    "runs": "-",
                    **{name: "-" for name in COUNTERS},
                    "started_at": None,
                    "last_run": None,
                }
            )
            return
        await self.send_json({"type": "metrics", **metrics})
