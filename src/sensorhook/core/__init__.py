"""Core domain: models, ports, and in-process state for sensorhook."""
