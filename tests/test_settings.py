"""
Unit Tests for Application Settings Configuration

Tests for:
- Default values for every settings group
- Loading top-level and nested settings from environment variables
- Range validation on player and audio settings
- Log level validation
- Settings caching and clearing
"""

import pytest
from pydantic import SecretStr, ValidationError

from discord_jukebox.config.settings import (
    AudioSettings,
    DiscordSettings,
    PlayerSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)

ENV_VARS = (
    "ENVIRONMENT",
    "DEBUG",
    "LOG_LEVEL",
    "DISCORD__TOKEN",
    "DISCORD__COMMAND_PREFIX",
    "PLAYER__IDLE_TIMEOUT_SECONDS",
    "PLAYER__PLAYLIST_LIMIT",
    "AUDIO__DEFAULT_VOLUME",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()


class TestDiscordSettings:
    def test_defaults(self):
        discord = DiscordSettings()

        assert discord.token.get_secret_value() == ""
        assert discord.command_prefix == "!"

    def test_token_aliases(self):
        """Should accept the token under any of its alias names."""
        assert DiscordSettings(bot_token="abc").token.get_secret_value() == "abc"
        assert DiscordSettings(discord_token="xyz").token.get_secret_value() == "xyz"

    def test_token_hidden_in_repr(self):
        discord = DiscordSettings(token=SecretStr("super-secret"))

        assert "super-secret" not in repr(discord)

    def test_prefix_length_limits(self):
        with pytest.raises(ValidationError):
            DiscordSettings(command_prefix="")
        with pytest.raises(ValidationError):
            DiscordSettings(command_prefix="toolong")


class TestPlayerSettings:
    def test_defaults(self):
        player = PlayerSettings()

        assert player.idle_timeout_seconds == 300.0
        assert player.playlist_limit == 50
        assert player.connect_timeout_seconds == 10.0

    def test_zero_idle_timeout_allowed(self):
        assert PlayerSettings(idle_timeout=0).idle_timeout_seconds == 0

    @pytest.mark.parametrize("limit", [0, 1001])
    def test_playlist_limit_range(self, limit):
        with pytest.raises(ValidationError):
            PlayerSettings(playlist_limit=limit)

    def test_negative_idle_timeout_rejected(self):
        with pytest.raises(ValidationError, match="greater than or equal to 0"):
            PlayerSettings(idle_timeout_seconds=-1)


class TestAudioSettings:
    def test_defaults(self):
        audio = AudioSettings()

        assert audio.default_volume == 0.5
        assert audio.ytdlp_format == "bestaudio/best"
        assert "-reconnect 1" in audio.ffmpeg_options["before_options"]
        assert audio.ffmpeg_options["options"] == "-vn"

    def test_volume_range(self):
        with pytest.raises(ValidationError):
            AudioSettings(default_volume=2.5)

    def test_frozen(self):
        audio = AudioSettings()
        with pytest.raises(ValidationError):
            audio.default_volume = 1.0


class TestSettings:
    def test_create_with_all_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.environment == "development"
        assert settings.debug is False
        assert settings.log_level == "INFO"
        assert isinstance(settings.player, PlayerSettings)

    def test_load_from_environment_variables(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("DEBUG", "true")
        monkeypatch.setenv("LOG_LEVEL", "WARNING")

        settings = Settings(_env_file=None)

        assert settings.environment == "production"
        assert settings.debug is True
        assert settings.log_level == "WARNING"

    def test_load_nested_settings_from_env(self, monkeypatch):
        """Should read nested groups using the ``__`` delimiter."""
        monkeypatch.setenv("DISCORD__TOKEN", "token-from-env")
        monkeypatch.setenv("DISCORD__COMMAND_PREFIX", "?")
        monkeypatch.setenv("PLAYER__IDLE_TIMEOUT_SECONDS", "30")
        monkeypatch.setenv("PLAYER__PLAYLIST_LIMIT", "25")
        monkeypatch.setenv("AUDIO__DEFAULT_VOLUME", "0.8")

        settings = Settings(_env_file=None)

        assert settings.discord.token.get_secret_value() == "token-from-env"
        assert settings.discord.command_prefix == "?"
        assert settings.player.idle_timeout_seconds == 30.0
        assert settings.player.playlist_limit == 25
        assert settings.audio.default_volume == 0.8

    def test_environment_validation(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "invalid")

        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_log_level_validation_case_insensitive(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")

        assert Settings(_env_file=None).log_level == "DEBUG"

    def test_log_level_validation_invalid(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "INVALID")

        with pytest.raises(ValidationError, match="Invalid log level"):
            Settings(_env_file=None)

    def test_nested_validation_propagates(self, monkeypatch):
        monkeypatch.setenv("PLAYER__PLAYLIST_LIMIT", "0")

        with pytest.raises(ValidationError):
            Settings(_env_file=None)


class TestSettingsCache:
    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()

    def test_clear_settings_cache(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("LOG_LEVEL", "ERROR")

        clear_settings_cache()
        second = get_settings()

        assert second is not first
        assert second.log_level == "ERROR"
