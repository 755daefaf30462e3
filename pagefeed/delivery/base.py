from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol


class Transport(Protocol):
    """Sends rendered messages to one channel.

    Implementations log and swallow delivery failures: `send` returns False
    instead of raising.
    """

    def send(self, messages: Sequence[str]) -> bool: ...
