import httpx
from loguru import logger

from app.services.integrations.platform_schemas import ChzzkChannelResponse
from app.shared.config import config


class ChzzkService:
    def __init__(self, client: httpx.AsyncClient, base_url: str | None = None):
        self._client = client
        self.base_url = (base_url or config.get_chzzk_api_base_url()).rstrip("/")

    async def fetch_channel_name(self, channel_id: str) -> str | None:
        """Fetch the display name of a Chzzk channel.

        Returns:
            The channel name, or None on a non-success status or a payload
            whose embedded code is not 200

        Raises:
            httpx.HTTPError: On transport failures
            pydantic.ValidationError: On a malformed payload
        """
        url = f"{self.base_url}/service/v1/channels/{channel_id}"
        async with self._client.stream("GET", url) as response:
            if not response.is_success:
                logger.debug("Chzzk channel API returned {} for {}", response.status_code, channel_id)
                return None
            await response.aread()

        payload = ChzzkChannelResponse.model_validate_json(response.content)
        if payload.code != 200:
            logger.debug("Chzzk channel API code={} message={} for {}", payload.code, payload.message, channel_id)
            return None
        if payload.content is None:
            return None
        return payload.content.channel_name or None
