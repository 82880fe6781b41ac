from pydantic import BaseModel, Field
from typing import Optional
import logging
import os

logger = logging.getLogger(__name__)

LIVE_KEY_PREFIX = "rzp_live"
DEFAULT_TIMEOUT_SECONDS = 10.0


def read_timeout(value: Optional[str]) -> float:
    """タイムアウト値を解釈する（不正な値はデフォルトに戻す）"""
    if value is None or not value.strip():
        return DEFAULT_TIMEOUT_SECONDS
    try:
        timeout = float(value)
    except ValueError:
        timeout = None
    if timeout is None or not timeout > 0 or timeout == float("inf"):
        logger.warning(f"Invalid RAZORPAY_TIMEOUT_SECONDS={value!r}, using {DEFAULT_TIMEOUT_SECONDS}s")
        return DEFAULT_TIMEOUT_SECONDS
    return timeout


class GatewaySettings(BaseModel):
    key_id: Optional[str] = None
    key_secret: Optional[str] = None
    environment: str = "production"
    source_tag: str = "3rd-client"
    timeout_seconds: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)

    @classmethod
    def from_env(cls) -> "GatewaySettings":
        """環境変数から設定を読み込む（キャッシュしない）"""
        key_id = os.getenv("VITE_RAZORPAY_KEY_ID") or os.getenv("RAZORPAY_KEY_ID")
        return cls(
            key_id=key_id or None,
            key_secret=os.getenv("RAZORPAY_KEY_SECRET") or None,
            environment=os.getenv("APP_ENVIRONMENT", "production"),
            source_tag=os.getenv("ORDER_SOURCE_TAG", "3rd-client"),
            timeout_seconds=read_timeout(os.getenv("RAZORPAY_TIMEOUT_SECONDS")),
        )

    @property
    def has_credentials(self) -> bool:
        return bool(self.key_id) and bool(self.key_secret)

    @property
    def is_live(self) -> bool:
        return bool(self.key_id) and self.key_id.startswith(LIVE_KEY_PREFIX)

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    def masked_key_id(self) -> str:
        if not self.key_id:
            return "NOT_SET"
        return self.key_id[:8] + "..."


def get_settings() -> GatewaySettings:
    return GatewaySettings.from_env()
