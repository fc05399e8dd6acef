"""Lifecycle management for an embedded sensorhook service.

On start the previous snapshot is restored and the MQTT connection is
opened; on stop the connection is closed and a fresh snapshot is written
within a bounded grace period.
"""

import asyncio
import logging

from sensorhook.adapters.forwarders import MqttForwarder
from sensorhook.core.ports import SnapshotStoragePort
from sensorhook.runtime.service import SensorHookService

logger = logging.getLogger(__name__)

DEFAULT_SHUTDOWN_GRACE = 10.0


class EmbeddedRuntime:
    """Starts and stops the service's background collaborators.

    Args:
        service: The service whose state is restored and saved.
        snapshot_storage: Where state is persisted, or None to disable.
        mqtt_forwarder: Broker connection to open, or None.
        shutdown_grace: Seconds the final snapshot may take before it is
            abandoned.
    """

    def __init__(
        self,
        service: SensorHookService,
        snapshot_storage: SnapshotStoragePort | None = None,
        mqtt_forwarder: MqttForwarder | None = None,
        shutdown_grace: float = DEFAULT_SHUTDOWN_GRACE,
    ) -> None:
        self.service = service
        self.snapshot_storage = snapshot_storage
        self.mqtt_forwarder = mqtt_forwarder
        self.shutdown_grace = shutdown_grace
        self._started = False

    @property
    def is_running(self) -> bool:
        return self._started

    async def start(self) -> None:
        """Restore state and connect to the broker. Safe to call twice."""
        if self._started:
            return
        if self.snapshot_storage is not None:
            logger.info("Loading data from disk")
            await asyncio.to_thread(
                self.snapshot_storage.load, self.service.store, self.service.event_log
            )
        if self.mqtt_forwarder is not None and self.mqtt_forwarder.enabled:
            logger.info("MQTT server configured, connecting")
            await asyncio.to_thread(self.mqtt_forwarder.start)
        self._started = True

    async def stop(self) -> None:
        """Disconnect from the broker and write the final snapshot."""
        if not self._started:
            return
        self._started = False
        if self.mqtt_forwarder is not None:
            await asyncio.to_thread(self.mqtt_forwarder.stop)
        await self.flush()

    async def flush(self) -> bool:
        """Write a snapshot now, giving up after the grace period.

        Returns:
            True when the snapshot was written in time.
        """
        if self.snapshot_storage is None:
            return False
        logger.info("Writing data to disk")
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(
                    self.snapshot_storage.save, self.service.store, self.service.event_log
                ),
                timeout=self.shutdown_grace,
            )
        except TimeoutError:
            logger.error("Snapshot abandoned after %ss", self.shutdown_grace)
            return False
