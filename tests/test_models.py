"""Tests for upstream and API models."""

import json

import pytest
from pydantic import ValidationError

from aggregator.models.api import SongDto
from aggregator.models.config import AppConfig
from aggregator.models.upstream import (
    ChannelPlaylistResponse,
    Playlist,
    ProgramIndexResponse,
    Song,
    TrafficMessage,
    TrafficResponse,
)


class TestPlaylistAvailableSong:
    """Tests for the current/previous song fallback rule."""

    def test_current_song_preferred(self):
        """Test the current song wins even when a previous song exists."""
        current = Song(title="Now")
        playlist = Playlist(song=current, previoussong=Song(title="Before"))
        assert playlist.available_song == current

    def test_current_song_without_previous(self):
        """Test the current song is returned when there is no previous song."""
        current = Song(title="Now")
        assert Playlist(song=current).available_song == current

    def test_falls_back_to_previous_song(self):
        """Test the previous song is used when nothing is playing."""
        previous = Song(title="Before")
        assert Playlist(song=None, previoussong=previous).available_song == previous

    def test_no_song_when_both_absent(self):
        """Test no song is available for an empty playlist."""
        assert Playlist().available_song is None

    def test_missing_playlist_has_no_song(self):
        """Test a response without a playlist yields no song."""
        response = ChannelPlaylistResponse.model_validate_json('{"playlist": null}')
        assert response.available_song is None

    def test_playlist_decoded_from_json(self):
        """Test the fallback rule applies to decoded upstream JSON."""
        body = json.dumps({
            "copyright": "Copyright Sveriges Radio 2024",
            "playlist": {
                "song": None,
                "previoussong": {"title": "B", "artist": "Band", "starttimeutc": "/Date(1)/"},
                "channel": {"id": 164, "name": "P3"},
            },
        })
        response = ChannelPlaylistResponse.model_validate_json(body)
        assert response.available_song.title == "B"
        assert response.available_song.artist == "Band"


class TestUpstreamDecoding:
    """Tests for the JSON decoding policy of upstream models."""

    def test_unknown_fields_ignored(self):
        """Test fields the models don't declare are dropped."""
        song = Song.model_validate_json('{"title": "A", "albumname": "X", "lyricist": "Y"}')
        assert song.title == "A"
        assert not hasattr(song, "albumname")

    def test_string_id_is_not_coerced(self):
        """Test a numeric field given as a string is rejected."""
        with pytest.raises(ValidationError):
            ProgramIndexResponse.model_validate_json('{"programs": [{"channel": {"id": "132"}}]}')

    def test_numeric_title_is_not_coerced(self):
        """Test a text field given as a number is rejected."""
        with pytest.raises(ValidationError):
            Song.model_validate_json('{"title": 42}')

    def test_programs_without_channel_are_skipped(self):
        """Test only programs carrying a channel contribute channels."""
        index = ProgramIndexResponse.model_validate_json(
            '{"programs": [{"channel": {"id": 1}}, {"name": "no channel"}, {"channel": {"id": 2}}]}'
        )
        assert [channel.id for channel in index.channels] == [1, 2]

    def test_null_program_list(self):
        """Test a null program list means no channels."""
        index = ProgramIndexResponse.model_validate_json('{"programs": null}')
        assert index.channels == []

    def test_null_traffic_messages_is_empty(self):
        """Test a null message list normalizes to an empty list."""
        response = TrafficResponse.model_validate_json('{"messages": null}')
        assert response.message_list == []

    def test_missing_traffic_messages_is_empty(self):
        """Test a missing message list normalizes to an empty list."""
        response = TrafficResponse.model_validate_json('{"copyright": "SR"}')
        assert response.message_list == []

    def test_traffic_message_fields(self):
        """Test traffic messages decode with their declared fields."""
        response = TrafficResponse.model_validate_json(
            '{"messages": [{"id": 1, "title": "T1", "description": "D", '
            '"category": "C", "priority": 1, "exactlocation": "E4"}]}'
        )
        assert response.message_list == [
            TrafficMessage(id=1, title="T1", description="D", category="C", priority=1)
        ]

    def test_models_are_immutable(self):
        """Test upstream records cannot be modified after decoding."""
        song = Song(title="A")
        with pytest.raises(ValidationError):
            song.title = "B"


class TestAppConfig:
    """Tests for AppConfig validation."""

    def test_defaults(self):
        """Test the default fan-out settings."""
        config = AppConfig()
        assert config.batch_size == 5
        assert config.max_concurrency == 5
        assert config.isolate_channel_failures is True
        assert config.upstream_base_url.startswith("https://")

    def test_trailing_slash_stripped(self):
        """Test the base URL is normalized without a trailing slash."""
        config = AppConfig(upstream_base_url="http://example.test/api/v2/")
        assert config.upstream_base_url == "http://example.test/api/v2"

    def test_rejects_non_http_url(self):
        """Test non-HTTP base URLs are rejected."""
        with pytest.raises(ValidationError):
            AppConfig(upstream_base_url="ftp://example.test")

    def test_rejects_zero_batch_size(self):
        """Test the batch size must be positive."""
        with pytest.raises(ValidationError):
            AppConfig(batch_size=0)

    def test_url_validation_uses_field_validator(self):
        """Test the base URL check is registered as a v2 field validator, not a deprecated v1 one."""
        decorators = AppConfig.__pydantic_decorators__

        assert "validate_upstream_base_url" in decorators.field_validators
        assert decorators.validators == {}


def test_song_dto_serializes_all_fields():
    """Test the song DTO exposes exactly the public fields."""
    dto = SongDto(title="A", artist="Band")
    assert set(dto.model_dump()) == {"title", "description", "artist", "composer", "recordlabel"}
