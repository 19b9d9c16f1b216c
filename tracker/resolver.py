"""Resolve handles to canonical channel IDs and serve cached channel meta."""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Optional

from config.settings import CHANNEL_META_TTL_HOURS
from youtube_api.time_utils import utc_now

from .errors import InvalidInputError, NotFoundError
from .models import ChannelMeta, ChannelState

logger = logging.getLogger(__name__)

CHANNEL_ID_PATTERN = re.compile(r"^UC[0-9A-Za-z_-]{22}$")


def is_channel_id(value: Optional[str]) -> bool:
    return bool(value) and bool(CHANNEL_ID_PATTERN.match(value))


class ChannelResolver:
    """Maps ``@handle`` / free text / channel IDs to a canonical ``UC...`` ID."""

    def __init__(self, gateway, *, ttl_hours: float = CHANNEL_META_TTL_HOURS):
        self._gateway = gateway
        self._ttl = ttl_hours

    def resolve(self, identifier: Optional[str]) -> str:
        cleaned = (identifier or "").strip()
        if is_channel_id(cleaned):
            return cleaned
        term = cleaned.lstrip("@").strip()
        if not term:
            raise InvalidInputError("channelId/handle required")
        channel_id = self._gateway.resolve_channel_by_search(term)
        if not channel_id:
            raise NotFoundError(f"cannot resolve channelId for '{identifier}'")
        logger.info("Resolved '%s' to channel %s", identifier, channel_id)
        return channel_id

    def fetch_meta(self, channel_id: str) -> ChannelMeta:
        meta = self._gateway.get_channel(channel_id)
        if meta is None:
            raise NotFoundError(f"channel not found: {channel_id}")
        return meta

    def get_meta(self, state: ChannelState, channel_id: str, now: Optional[datetime] = None) -> ChannelMeta:
        """Return cached meta if still fresh, else fetch and store it on ``state``."""
        now = now or utc_now()
        cached = state.meta
        if cached is not None and cached.is_fresh(now, self._ttl):
            return cached
        meta = self.fetch_meta(channel_id)
        state.meta = meta
        return meta


__all__ = ["ChannelResolver", "CHANNEL_ID_PATTERN", "is_channel_id"]
