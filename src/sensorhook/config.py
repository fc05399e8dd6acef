"""Service configuration.

The configuration file holds one ``key value`` pair per line. Keys are
case-insensitive, blank lines and lines starting with ``#`` are ignored:

    # /etc/sensorhook.conf
    Port 8080
    HandlersPath /var/lib/sensorhook/handlers
    MqttHost broker.local
"""

import dataclasses
import logging
import os
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "SENSORHOOK_CONFIG"
DEFAULT_CONFIG_PATH = "/etc/sensorhook.conf"
REDACTED = "<redacted>"

_SECRET_FIELDS = frozenset({"mqtt_password"})


@dataclass(frozen=True)
class Config:
    """Runtime settings with the service defaults."""

    port: int = 8080
    user: str = ""
    group: str = ""
    handlers_path: str = "/var/lib/sensorhook/handlers"
    data_file: str = "/var/lib/sensorhook/data.json"
    max_events: int = 250
    window_size: int = 10
    graphite_host: str = "localhost"
    graphite_port: int = 2003
    mqtt_host: str = ""
    mqtt_port: int = 1883
    mqtt_user: str = ""
    mqtt_password: str = ""
    mqtt_namespace: str = "sensorhook"
    forward_timeout: float = 2.0
    handler_timeout: float = 30.0
    shutdown_grace: float = 10.0

    def redacted(self) -> dict[str, Any]:
        """Return the settings as a dict with secrets masked."""
        values = dataclasses.asdict(self)
        for name in _SECRET_FIELDS:
            if values.get(name):
                values[name] = REDACTED
        return values


# Config file keys, lower-cased, mapped to Config field names
_FILE_KEYS = {
    "port": "port",
    "user": "user",
    "group": "group",
    "handlerspath": "handlers_path",
    "datafile": "data_file",
    "maxevents": "max_events",
    "windowsize": "window_size",
    "graphitehost": "graphite_host",
    "graphiteport": "graphite_port",
    "mqtthost": "mqtt_host",
    "mqttport": "mqtt_port",
    "mqttuser": "mqtt_user",
    "mqttpassword": "mqtt_password",
    "mqttnamespace": "mqtt_namespace",
    "forwardtimeout": "forward_timeout",
    "handlertimeout": "handler_timeout",
    "shutdowngrace": "shutdown_grace",
}

_FIELD_TYPES = {f.name: f.type for f in dataclasses.fields(Config)}


def _convert(name: str, raw: str) -> Any:
    field_type = _FIELD_TYPES[name]
    if field_type is int:
        return int(raw)
    if field_type is float:
        return float(raw)
    return raw


def parse_config(text: str, base: Config | None = None) -> Config:
    """Parse configuration file text on top of base (defaults if None).

    Unknown keys and malformed lines are ignored; values that cannot be
    converted keep the previous setting and are logged.
    """
    overrides: dict[str, Any] = {}
    for number, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        parts = line.split(None, 1)
        if len(parts) != 2:
            continue
        key, value = parts[0].lower(), parts[1].strip()
        name = _FILE_KEYS.get(key)
        if name is None:
            logger.debug("Ignoring unknown config key %r on line %d", key, number)
            continue
        try:
            overrides[name] = _convert(name, value)
        except ValueError:
            logger.warning("Invalid value for %s on line %d: %r", key, number, value)
    return dataclasses.replace(base or Config(), **overrides)


def load_config(path: str | None = None) -> Config:
    """Load settings from path, the environment-selected file, or defaults.

    A missing file yields the defaults; an unreadable one is logged and
    also yields the defaults.
    """
    path = path or os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH
    try:
        with open(path, encoding="utf-8") as handle:
            text = handle.read()
    except FileNotFoundError:
        logger.info("No config file at %s, using defaults", path)
        return Config()
    except OSError as exc:
        logger.error("Error reading config file %s: %s", path, exc)
        return Config()
    config = parse_config(text)
    logger.info("Handlers path: %s", config.handlers_path)
    logger.info("Data file: %s", config.data_file)
    return config
