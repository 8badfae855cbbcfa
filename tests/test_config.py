from pathlib import Path

import pytest

from ytgate.config import Settings


def test_defaults():
    settings = Settings.from_env({})
    assert settings.provider == "ytdlp"
    assert settings.ytdlp_path == "yt-dlp"
    assert settings.ytdlp_cookies is None
    assert settings.cobalt_api_url == "https://api.cobalt.tools/api/json"
    assert settings.metadata_timeout == 30.0
    assert settings.info_fallback is True
    assert settings.cors_origins == ("*",)
    assert settings.port == 8000


def test_values_from_environment():
    settings = Settings.from_env({
        "YTGATE_PROVIDER": "Cobalt",
        "YTDLP_PATH": "/opt/bin/yt-dlp",
        "YTDLP_COOKIES": "/secrets/cookies.txt",
        "YTGATE_METADATA_TIMEOUT": "12.5",
        "YTGATE_CHUNK_SIZE": "1024",
        "YTGATE_INFO_FALLBACK": "false",
        "YTGATE_CORS_ORIGINS": "https://a.example, https://b.example",
        "YTGATE_STATIC_DIR": "/srv/www",
        "PORT": "3000",
        "LOG_LEVEL": "debug",
    })
    assert settings.provider == "cobalt"
    assert settings.ytdlp_path == "/opt/bin/yt-dlp"
    assert settings.ytdlp_cookies == "/secrets/cookies.txt"
    assert settings.metadata_timeout == 12.5
    assert settings.chunk_size == 1024
    assert settings.info_fallback is False
    assert settings.cors_origins == ("https://a.example", "https://b.example")
    assert settings.static_dir == Path("/srv/www")
    assert settings.port == 3000
    assert settings.log_level == "DEBUG"


def test_settings_are_frozen():
    settings = Settings()
    with pytest.raises(Exception):
        settings.provider = "cobalt"


def test_unknown_provider():
    with pytest.raises(ValueError):
        Settings.from_env({"YTGATE_PROVIDER": "ytdl-core"})


@pytest.mark.parametrize("value", ["soon", "-1", "0"])
def test_bad_timeout(value):
    with pytest.raises(ValueError):
        Settings.from_env({"YTGATE_METADATA_TIMEOUT": value})


@pytest.mark.parametrize("value, expected", [("true", True), ("ON", True), ("0", False), ("no", False)])
def test_fallback_flag(value, expected):
    assert Settings.from_env({"YTGATE_INFO_FALLBACK": value}).info_fallback is expected


def test_misspelled_fallback_flag():
    with pytest.raises(ValueError, match="YTGATE_INFO_FALLBACK"):
        Settings.from_env({"YTGATE_INFO_FALLBACK": "ture"})
