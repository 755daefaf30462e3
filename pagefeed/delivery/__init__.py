"""Outbound delivery - Discord webhook and X transports"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pagefeed.delivery.base import Transport

if TYPE_CHECKING:
    from pagefeed.digest.channels import Channel


def get_transport(channel: Channel | str) -> Transport:
    """
    Build the transport for a channel from current config.

    Raises:
        ValueError: If the channel name is unknown
    """
    # Channel registry imports the transport modules
    from pagefeed.digest.channels import get_channel_spec

    return get_channel_spec(channel).transport_factory()


__all__ = ["Transport", "get_transport"]
