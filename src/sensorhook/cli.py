"""Command line entry point.

Run with:
    sensorhook --config /etc/sensorhook.conf

uvicorn turns SIGINT and SIGTERM into a lifespan shutdown, which writes
the final snapshot before the process exits.
"""

import argparse
import grp
import logging
import os
import pwd

import uvicorn

from sensorhook import __version__
from sensorhook.adapters.forwarders import MqttForwarder
from sensorhook.adapters.frameworks.asgi import ASGIApp, create_asgi_app
from sensorhook.adapters.storage import JsonSnapshotStorage
from sensorhook.config import Config, load_config
from sensorhook.logs import configure_logging
from sensorhook.runtime import EmbeddedRuntime, SensorHookService

logger = logging.getLogger(__name__)


def create_app(config: Config) -> ASGIApp:
    """Wire the service, its runtime and the ASGI app from config."""
    mqtt_forwarder = None
    if config.mqtt_host:
        mqtt_forwarder = MqttForwarder(
            config.mqtt_host,
            config.mqtt_port,
            username=config.mqtt_user,
            password=config.mqtt_password,
            namespace=config.mqtt_namespace,
            timeout=config.forward_timeout,
        )
    service = SensorHookService.from_config(config, mqtt_forwarder=mqtt_forwarder)
    runtime = EmbeddedRuntime(
        service,
        snapshot_storage=JsonSnapshotStorage(config.data_file),
        mqtt_forwarder=mqtt_forwarder,
        shutdown_grace=config.shutdown_grace,
    )
    return create_asgi_app(service, runtime)


def drop_privileges(user: str, group: str) -> None:
    """Switch to the configured user and group.

    Raises:
        KeyError: If the user or group does not exist.
        PermissionError: If the process may not change identity.
    """
    uid = pwd.getpwnam(user).pw_uid
    gid = grp.getgrnam(group).gr_gid
    os.setgroups([])
    os.setgid(gid)
    os.setuid(uid)
    logger.info("Privileges dropped to %s:%s", user, group)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sensorhook",
        description="Telemetry sink that stores readings and fires handlers.",
    )
    parser.add_argument(
        "--config",
        help="configuration file (default: $SENSORHOOK_CONFIG or /etc/sensorhook.conf)",
    )
    parser.add_argument("--host", default="0.0.0.0", help="address to listen on")
    parser.add_argument("--port", type=int, help="port to listen on, overrides the config file")
    parser.add_argument("--log-level", default="INFO", help="logging level")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    config = load_config(args.config)
    port = args.port or config.port

    if config.user and config.group:
        drop_privileges(config.user, config.group)
    else:
        logger.warning("User and Group must be defined to drop privileges")

    logger.info("Starting server on %s:%d", args.host, port)
    uvicorn.run(
        create_app(config),
        host=args.host,
        port=port,
        lifespan="on",
        log_level=args.log_level.lower(),
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
