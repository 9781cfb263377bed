"""Projections from upstream records to public response models."""

from aggregator.models.api import SongDto, TrafficMessageDto
from aggregator.models.upstream import Song, TrafficMessage


def song_to_dto(song: Song) -> SongDto:
    return SongDto(
        title=song.title,
        description=song.description,
        artist=song.artist,
        composer=song.composer,
        recordlabel=song.recordlabel
    )


def traffic_message_to_dto(message: TrafficMessage) -> TrafficMessageDto:
    return TrafficMessageDto(
        id=message.id,
        title=message.title,
        description=message.description,
        category=message.category,
        priority=message.priority
    )
