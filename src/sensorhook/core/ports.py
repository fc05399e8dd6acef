"""Port interfaces for forwarding and persistence adapters.

These protocols define the contracts that outbound adapters must implement.
The ingestion service depends only on these interfaces, not concrete
implementations.
"""

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from sensorhook.core.event_log import EventLog
    from sensorhook.core.series import SeriesStore


@runtime_checkable
class ForwarderPort(Protocol):
    """Port for pushing a reading update to a downstream sink.

    Adapters implementing this protocol must never raise for downstream
    failures; they log and return.
    Examples: GraphiteForwarder, MqttForwarder.
    """

    def push(self, key: str, path: str, value: str) -> None:
        """Forward one update.

        Args:
            key: Dotted reading key.
            path: Un-normalised request path (slash separated).
            value: Raw submitted value.
        """
        ...


@runtime_checkable
class SnapshotStoragePort(Protocol):
    """Port for saving and restoring process state.

    Examples: JsonSnapshotStorage.
    """

    def save(self, store: "SeriesStore", event_log: "EventLog") -> bool:
        """Write the full state of the store and event log.

        Returns:
            True when the snapshot was written.
        """
        ...

    def load(self, store: "SeriesStore", event_log: "EventLog") -> None:
        """Populate the store and event log from a previous snapshot."""
        ...
