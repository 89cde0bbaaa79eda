import pytest

from signalk_wunderground.config import Config, load_config


@pytest.fixture
def config() -> Config:
    return load_config(
        _env_file=None,
        station_id="KTEST123",
        password="secret",
        submit_interval=5,
        station_lat=52.0,
        station_lon=4.0,
        submit_url="https://weather.example.test/updateweatherstation.php",
    )
