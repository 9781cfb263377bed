"""Models for the JSON documents returned by the upstream API.

Unknown fields are ignored so upstream additions do not break decoding,
scalars are validated strictly (a string id is rejected rather than coerced)
and every model is immutable.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class UpstreamModel(BaseModel):
    """Base model for upstream payloads."""

    model_config = ConfigDict(extra="ignore", strict=True, frozen=True)


class Channel(UpstreamModel):
    """A radio channel referenced from the program index."""

    id: int
    name: Optional[str] = None


class Program(UpstreamModel):
    """One entry of the program index."""

    channel: Optional[Channel] = None


class ProgramIndexResponse(UpstreamModel):
    """Response of ``/programs/index``."""

    programs: Optional[List[Program]] = None

    @property
    def channels(self) -> List[Channel]:
        """Channels of all programs that have one, in index order."""
        return [
            program.channel
            for program in self.programs or []
            if program.channel is not None
        ]


class Song(UpstreamModel):
    """A song as reported by a channel playlist."""

    title: Optional[str] = None
    description: Optional[str] = None
    artist: Optional[str] = None
    composer: Optional[str] = None
    recordlabel: Optional[str] = None


class Playlist(UpstreamModel):
    """Current and previous song of a channel at fetch time."""

    song: Optional[Song] = None
    previoussong: Optional[Song] = None

    @property
    def available_song(self) -> Optional[Song]:
        """The current song, falling back to the previous one."""
        if self.song is None:
            return self.previoussong
        return self.song


class ChannelPlaylistResponse(UpstreamModel):
    """Response of ``/playlists/rightnow``."""

    playlist: Optional[Playlist] = None

    @property
    def available_song(self) -> Optional[Song]:
        if self.playlist is None:
            return None
        return self.playlist.available_song


class TrafficMessage(UpstreamModel):
    """A single traffic message."""

    id: int
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    priority: int


class TrafficResponse(UpstreamModel):
    """Response of ``/traffic/messages``."""

    messages: Optional[List[TrafficMessage]] = None

    @property
    def message_list(self) -> List[TrafficMessage]:
        # A null list means "no messages right now"
        return list(self.messages) if self.messages is not None else []
