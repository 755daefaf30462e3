"""
Notification channels.

Each Channel member maps to a ChannelSpec: how to render a digest for it and
how to build the transport that delivers it. To add a channel, add a member,
a renderer, and a CHANNELS entry.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum

from pagefeed.delivery.base import Transport
from pagefeed.delivery.discord import DiscordWebhookTransport
from pagefeed.delivery.x import XTransport
from pagefeed.digest.renderers import render_length_constrained, render_long_form
from pagefeed.storage.models import PageRecord


class Channel(str, Enum):
    """Notification target, as named in API requests."""

    DISCORD = "Discord"
    X = "X"


@dataclass(frozen=True)
class ChannelSpec:
    render: Callable[[Sequence[PageRecord]], str]
    transport_factory: Callable[[], Transport]


CHANNELS: dict[Channel, ChannelSpec] = {
    Channel.DISCORD: ChannelSpec(
        render=render_long_form,
        transport_factory=DiscordWebhookTransport,
    ),
    Channel.X: ChannelSpec(
        render=render_length_constrained,
        transport_factory=XTransport,
    ),
}


def get_channel_spec(channel: Channel | str) -> ChannelSpec:
    """
    Look up the ChannelSpec for a channel name or member.

    Raises:
        ValueError: If the channel name is unknown
    """
    return CHANNELS[Channel(channel)]


def render_for_channel(channel: Channel | str, records: Sequence[PageRecord]) -> list[str]:
    """Render records into the messages to send on `channel`."""
    return [get_channel_spec(channel).render(records)]
