"""Request/response models for the pagefeed API"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pagefeed.digest.channels import Channel
from pagefeed.storage.models import PageUpdate


class CosenseAttachment(BaseModel):
    """One edited page in a Cosense (Slack-compatible) webhook"""

    model_config = ConfigDict(populate_by_name=True)

    title: str
    title_link: str
    text: str = ""
    raw_text: str = Field(default="", alias="rawText")
    mrkdwn_in: list[str] = Field(default_factory=list)
    author_name: str = ""
    thumb_url: str | None = None

    def to_update(self) -> PageUpdate:
        return PageUpdate(page_name=self.title, link=self.title_link, author_name=self.author_name)


class CosenseWebhookRequest(BaseModel):
    """Body Cosense posts to a Slack-compatible webhook URL"""

    text: str = ""
    mrkdown: bool = True
    username: str = ""
    attachments: list[CosenseAttachment] = Field(default_factory=list)


class WebhookReceivedResponse(BaseModel):
    status: str = "received"
    count: int


class MessageSendRequest(BaseModel):
    """Digest request: pages of `webhookId` updated since `from_timestamp`"""

    webhookId: str = Field(..., min_length=1)
    notification: Channel
    from_timestamp: str = Field(..., min_length=1)

    @field_validator("webhookId", "from_timestamp")
    @classmethod
    def _strip(cls, value: str) -> str:
        return value.strip()


class MessageSentResponse(BaseModel):
    status: str = "sent"
    service: Channel
    pageCount: int
    messageCount: int
    delivered: bool


class RegisterWebhookRequest(BaseModel):
    # Optional so a missing key is a 400 from the route, not a 422
    apiKey: str | None = None


class RegisterWebhookResponse(BaseModel):
    status: str = "registered"
    webhookId: str
