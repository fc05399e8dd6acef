"""Adapters connecting the sensorhook core to the outside world."""
