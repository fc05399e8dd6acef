"""The ingestion and query pipeline.

A write flows through the store, the forwarders and the handler
dispatcher; a read only touches the store.
"""

import logging
from dataclasses import dataclass, field

from sensorhook.adapters.forwarders import ForwarderSet, GraphiteForwarder, MqttForwarder
from sensorhook.adapters.handlers import HandlerResolver, TriggerDispatcher
from sensorhook.config import Config
from sensorhook.core.event_log import EventLog
from sensorhook.core.exceptions import IOFailureError
from sensorhook.core.keys import normalize_key, normalize_path
from sensorhook.core.models import Event, HandlerDescriptor, SeriesEntry
from sensorhook.core.series import SeriesStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SetResult:
    """Outcome of one write.

    Attributes:
        key: Dotted reading key.
        path: Lower-cased request path.
        value: Raw submitted value, empty if none was given.
        events: One Event per handler that was fired.
    """

    key: str
    path: str
    value: str
    events: list[Event] = field(default_factory=list)


class SensorHookService:
    """Owns the shared state and runs the set/get pipeline.

    Args:
        store: Reading store.
        event_log: Log of handler executions.
        resolver: Finds handlers for request paths.
        dispatcher: Runs handlers and records Events.
        forwarders: Downstream sinks receiving every write.
        config: Settings shown on the admin endpoint.
    """

    def __init__(
        self,
        store: SeriesStore,
        event_log: EventLog,
        resolver: HandlerResolver,
        dispatcher: TriggerDispatcher,
        forwarders: ForwarderSet | None = None,
        config: Config | None = None,
    ) -> None:
        self.store = store
        self.event_log = event_log
        self.resolver = resolver
        self.dispatcher = dispatcher
        self.forwarders = forwarders or ForwarderSet()
        self.config = config or Config()

    @classmethod
    def from_config(
        cls, config: Config, mqtt_forwarder: MqttForwarder | None = None
    ) -> "SensorHookService":
        """Build a service with the adapters described by config."""
        store = SeriesStore(window_size=config.window_size)
        event_log = EventLog(max_size=config.max_events)
        forwarders: list[GraphiteForwarder | MqttForwarder] = [
            GraphiteForwarder(
                config.graphite_host, config.graphite_port, timeout=config.forward_timeout
            )
        ]
        if mqtt_forwarder is not None:
            forwarders.append(mqtt_forwarder)
        return cls(
            store=store,
            event_log=event_log,
            resolver=HandlerResolver(config.handlers_path),
            dispatcher=TriggerDispatcher(store, event_log, timeout=config.handler_timeout),
            forwarders=ForwarderSet(forwarders),
            config=config,
        )

    def set(self, path: str, value: str = "") -> SetResult:
        """Record a reading and fire the handlers matching its path.

        Forwarder and handler failures are logged, never raised.
        """
        request_path = normalize_path(path)
        key = normalize_key(path)
        if value:
            logger.info("Setting %s to %r", key, value)
        else:
            logger.info("Setting %s, no value provided", key)
        self.store.update(key, value)
        self.forwarders.push(key, request_path, value)

        try:
            handlers = self.resolver.match(request_path)
        except IOFailureError as exc:
            logger.error("Error scanning for executables: %s", exc)
            return SetResult(key=key, path=request_path, value=value)
        logger.debug("Found executables for %s: %s", key, handlers)

        context = self.dispatcher.build_context(request_path, key, value)
        events = self.dispatcher.run_all(handlers, context)
        return SetResult(key=key, path=request_path, value=value, events=events)

    def get(self, path: str, average: int | None = None) -> tuple[str, float]:
        """Return the latest or averaged value at path with its timestamp.

        Raises:
            NotFoundError: If the key holds no data.
            InvalidInputError: If average is not positive.
        """
        return self.store.read(normalize_key(path), average)

    def status(self) -> dict[str, SeriesEntry]:
        return self.store.snapshot()

    def events(self) -> list[Event]:
        return self.event_log.all()

    def handlers(self) -> list[HandlerDescriptor]:
        return self.resolver.describe()
