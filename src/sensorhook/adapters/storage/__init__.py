"""Storage adapters implementing core ports."""

from sensorhook.adapters.storage.json_snapshot import JsonSnapshotStorage

__all__ = ["JsonSnapshotStorage"]
