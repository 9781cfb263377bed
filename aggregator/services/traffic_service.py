"""Traffic message fetching."""

import logging
from typing import List

from aggregator.models.upstream import TrafficMessage, TrafficResponse
from aggregator.services.interfaces import UpstreamClientInterface


logger = logging.getLogger(__name__)

TRAFFIC_MESSAGES_PATH = "/traffic/messages"


class TrafficMessageService:
    """Fetches the latest traffic messages from the upstream API."""

    def __init__(self, upstream_client: UpstreamClientInterface):
        self.upstream_client = upstream_client

    async def get_latest_messages(self) -> List[TrafficMessage]:
        """Fetch the current traffic messages in upstream order.

        A null ``messages`` field yields an empty list.

        Raises:
            UpstreamError: If the upstream fetch or decoding fails
        """
        response = await self.upstream_client.get_json(TRAFFIC_MESSAGES_PATH, TrafficResponse)
        messages = response.message_list

        if response.messages is None:
            logger.info("Upstream returned no traffic message list")
        else:
            logger.debug("Fetched traffic messages", extra={'message_count': len(messages)})

        return messages
