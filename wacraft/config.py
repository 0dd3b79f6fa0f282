"""wacraft configuration management."""

import logging

from pydantic_settings import BaseSettings
from pydantic import Field


class WacraftSettings(BaseSettings):
    """Settings loaded from environment variables or .env file."""

    # Placeholder literals used when a descriptor leaves a field out
    default_currency: str = Field(default="IDR", description="ISO 4217 currency for payments, products and orders")
    business_owner_jid: str = Field(default="0@s.whatsapp.net", description="Placeholder business owner JID")
    request_from_jid: str = Field(default="0@s.whatsapp.net", description="Placeholder payment requester JID")
    seller_jid: str = Field(default="0@s.whatsapp.net", description="Placeholder order seller JID")
    order_id: str = Field(default="ORDER000000000", description="Placeholder order id")
    order_token: str = Field(default="ORDER_TOKEN", description="Placeholder order token")

    # Poll-result snapshots are forwarded as newsletter updates
    newsletter_name: str = Field(default="Newsletter", description="Default newsletter name")
    newsletter_jid: str = Field(default="0@newsletter", description="Default newsletter JID")

    # Remote thumbnail fetch (order messages)
    thumbnail_timeout: float = Field(default=15.0, description="HTTP timeout in seconds")
    thumbnail_max_bytes: int = Field(default=5 * 1024 * 1024, description="Reject larger thumbnails")
    user_agent: str = Field(default="Mozilla/5.0 (compatible; wacraft/0.1)", description="HTTP User-Agent")

    log_level: str = Field(default="INFO", description="Logging level for the CLI")

    model_config = {"env_prefix": "WACRAFT_", "env_file": ".env", "extra": "ignore"}


def load_settings() -> WacraftSettings:
    """Load settings from environment."""
    settings = WacraftSettings()

    logger = logging.getLogger("wacraft.config")
    if settings.thumbnail_timeout > 60:
        logger.warning(
            f"Thumbnail timeout is {settings.thumbnail_timeout:.0f}s. A slow media host "
            "will hold up order messages for that long before the thumbnail is dropped."
        )

    return settings
