"""MQTT publish/subscribe forwarder."""

import logging
from collections.abc import Callable
from typing import Any

import paho.mqtt.client as mqtt

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "sensorhook"
DEFAULT_TIMEOUT = 2.0
DEFAULT_KEEPALIVE = 60


def _default_client_factory(client_id: str) -> mqtt.Client:
    return mqtt.Client(
        callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
        client_id=client_id,
    )


class MqttForwarder:
    """Publishes every update under a fixed topic namespace.

    Also subscribes to every topic under the namespace; inbound messages
    are only logged.

    Args:
        host: Broker host name. An empty host disables the forwarder.
        port: Broker port.
        username: Optional user name for broker authentication.
        password: Password used together with username.
        namespace: Topic prefix for published updates.
        timeout: Seconds to wait for a publish to be handed to the broker.
        client_id: MQTT client identifier.
        client_factory: Builds the paho client; overridable in tests.
    """

    def __init__(
        self,
        host: str,
        port: int = 1883,
        username: str = "",
        password: str = "",
        namespace: str = DEFAULT_NAMESPACE,
        timeout: float = DEFAULT_TIMEOUT,
        client_id: str = DEFAULT_NAMESPACE,
        client_factory: Callable[[str], Any] = _default_client_factory,
    ) -> None:
        self.host = host
        self.port = port
        self.namespace = namespace.strip("/")
        self.timeout = timeout
        self._username = username
        self._password = password
        self._client_id = client_id
        self._client_factory = client_factory
        self._client: Any = None

    @property
    def enabled(self) -> bool:
        return bool(self.host)

    @property
    def is_connected(self) -> bool:
        return self._client is not None and bool(self._client.is_connected())

    def topic_for(self, path: str) -> str:
        return f"{self.namespace}/{path.strip('/')}"

    def start(self) -> bool:
        """Connect to the broker and start the network loop.

        Returns:
            True when the connection attempt was started.
        """
        if not self.enabled:
            return False
        client = self._client_factory(self._client_id)
        client.enable_logger(logger)
        if self._username:
            client.username_pw_set(self._username, self._password)

        subscription = f"{self.namespace}/#"

        def on_connect(
            c: Any, _userdata: Any, _flags: Any, reason_code: Any, _properties: Any
        ) -> None:
            if reason_code.is_failure:
                logger.warning("MQTT connect failed: %s", reason_code)
                return
            logger.info("Connected to MQTT server %s:%d", self.host, self.port)
            c.subscribe(subscription, qos=0)

        def on_message(_c: Any, _userdata: Any, msg: Any) -> None:
            logger.info("Received message on topic %s: %r", msg.topic, msg.payload)

        client.on_connect = on_connect
        client.on_message = on_message
        try:
            client.connect(self.host, self.port, keepalive=DEFAULT_KEEPALIVE)
        except OSError as exc:
            logger.error("Failed to connect to MQTT server %s:%d: %s", self.host, self.port, exc)
            return False
        client.loop_start()
        self._client = client
        return True

    def stop(self) -> None:
        """Disconnect and stop the network loop."""
        client = self._client
        self._client = None
        if client is None:
            return
        try:
            client.disconnect()
        finally:
            client.loop_stop()

    def push(self, key: str, path: str, value: str) -> None:
        """Publish the raw value to the topic derived from path."""
        if not self.is_connected:
            return
        topic = self.topic_for(path)
        try:
            info = self._client.publish(topic, value, qos=0, retain=False)
            if info.rc != mqtt.MQTT_ERR_SUCCESS:
                logger.warning("Error publishing to %s: %s", topic, mqtt.error_string(info.rc))
                return
            info.wait_for_publish(timeout=self.timeout)
        except (OSError, RuntimeError, ValueError) as exc:
            logger.warning("Error publishing to %s: %s", topic, exc)
