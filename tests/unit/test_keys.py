"""Tests for request path normalisation."""

import pytest

from sensorhook.core.keys import normalize_key, normalize_path

pytestmark = [pytest.mark.unit, pytest.mark.core]


@pytest.mark.parametrize(
    ("path", "key"),
    [
        ("sensors/kitchen/temp", "sensors.kitchen.temp"),
        ("Sensors/Kitchen/TEMP", "sensors.kitchen.temp"),
        ("/sensors/temp/", "sensors.temp"),
        ("single", "single"),
    ],
)
def test_normalize_key(path: str, key: str) -> None:
    assert normalize_key(path) == key


def test_normalize_path_keeps_slashes() -> None:
    assert normalize_path("/Sensors/Kitchen/") == "sensors/kitchen"
