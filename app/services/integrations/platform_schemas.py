from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ChzzkChannelContent(BaseModel):
    """Subset of the channel object returned by the Chzzk service API."""

    channel_id: str | None = Field(default=None, alias="channelId", description="Channel ID")
    channel_name: str | None = Field(default=None, alias="channelName", description="Channel display name")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ChzzkChannelResponse(BaseModel):
    """Envelope of `GET /service/v1/channels/{channel_id}`.

    The API answers HTTP 200 even for unknown channels; `code` carries the real status.
    """

    code: int = Field(..., description="Payload status code, 200 on success")
    message: str | None = Field(default=None, description="Error message when code != 200")
    content: ChzzkChannelContent | None = Field(default=None, description="Channel details")

    model_config = ConfigDict(extra="ignore")


class YouTubeOEmbedResponse(BaseModel):
    """Subset of the YouTube oEmbed payload."""

    title: str | None = Field(default=None, description="Video title")
    author_name: str | None = Field(default=None, description="Channel display name")

    model_config = ConfigDict(extra="ignore")
