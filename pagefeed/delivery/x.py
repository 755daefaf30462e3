"""
X (Twitter) Delivery

Posts messages through the X API v2 ``POST /2/tweets`` endpoint with OAuth 1.0a
user-context signing. When more than one message is sent, each one replies to
the previous tweet so the digest reads as a thread.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import requests
from requests_oauthlib import OAuth1

from pagefeed.config import HTTP_TIMEOUT_SECONDS, X_TWEET_ENDPOINT, get_x_credentials
from pagefeed.observability.logging import get_logger
from pagefeed.observability.telemetry import counter

logger = get_logger(__name__)


class XTransport:
    """Delivers messages as tweets"""

    def __init__(
        self,
        credentials: dict[str, str | None] | None = None,
        endpoint: str = X_TWEET_ENDPOINT,
        timeout: float = HTTP_TIMEOUT_SECONDS,
    ):
        """
        Args:
            credentials: api_key, api_key_secret, access_token, access_token_secret
                (default: API_KEY, API_KEY_SECRET, ACCESS_TOKEN, ACCESS_TOKEN_SECRET env vars)
            endpoint: Tweet creation endpoint
            timeout: Per-request timeout in seconds
        """
        creds = credentials if credentials is not None else get_x_credentials()
        self.endpoint = endpoint
        self.timeout = timeout
        self.enabled = all(
            creds.get(name)
            for name in ("api_key", "api_key_secret", "access_token", "access_token_secret")
        )
        self._auth: OAuth1 | None = None

        if self.enabled:
            self._auth = OAuth1(
                creds["api_key"],
                client_secret=creds["api_key_secret"],
                resource_owner_key=creds["access_token"],
                resource_owner_secret=creds["access_token_secret"],
            )
        else:
            logger.warning(
                "X API credentials not configured. Set API_KEY, API_KEY_SECRET, "
                "ACCESS_TOKEN and ACCESS_TOKEN_SECRET."
            )

    def _post_tweet(self, text: str, reply_to: str | None) -> str:
        """
        Create one tweet.

        Returns:
            The new tweet id

        Raises:
            requests.RequestException: Network error or non-2xx response
            ValueError: Response without a tweet id
        """
        payload: dict[str, Any] = {"text": text}
        if reply_to:
            payload["reply"] = {"in_reply_to_tweet_id": reply_to}

        response = requests.post(
            self.endpoint,
            json=payload,
            auth=self._auth,
            timeout=self.timeout,
        )
        response.raise_for_status()

        tweet_id = response.json().get("data", {}).get("id")
        if not tweet_id:
            raise ValueError("X API response did not include a tweet id")
        return str(tweet_id)

    def send(self, messages: Sequence[str]) -> bool:
        """
        Tweet each message in order, threading replies.

        Returns:
            True if every tweet was created, False if skipped or any failed

        Side Effects:
            - HTTP POST to the X API per message
            - Increments delivery.x.sent / delivery.x.failed
        """
        for message in messages:
            logger.info("X post (%d chars)", len(message))
            logger.debug("X post body:\n%s", message)

        if not self.enabled:
            logger.info("X API credentials not configured, skipping actual send")
            return False

        previous_id: str | None = None
        for message in messages:
            try:
                previous_id = self._post_tweet(message, previous_id)
            except (requests.RequestException, ValueError) as e:
                counter("delivery.x.failed")
                logger.error("Failed to post to X: %s", e)
                return False

            counter("delivery.x.sent")
            logger.info("Tweeted %s", previous_id)

        return True
