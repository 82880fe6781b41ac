from typing import Any, Callable, Dict, Optional, Protocol
import logging
import razorpay
import requests
from razorpay.errors import BadRequestError, ServerError
from razorpay.errors import GatewayError as RazorpayGatewayError
from models.settings import GatewaySettings

# ログ設定
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "Failed to create payment order"
DEFAULT_ERROR_CODE = "GATEWAY_ORDER_FAILED"


class GatewayError(Exception):
    """ゲートウェイ呼び出しの失敗（ステータス・説明・エラーコードを保持する）"""

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        description: Optional[str] = None,
        code: Optional[str] = None,
    ):
        super().__init__(message or description or DEFAULT_ERROR_MESSAGE)
        self.message = message
        self.status_code = status_code
        self.description = description
        self.code = code

    @property
    def http_status(self) -> int:
        return self.status_code or 500

    @property
    def error_message(self) -> str:
        return self.description or self.message or DEFAULT_ERROR_MESSAGE

    @property
    def error_code(self) -> str:
        return self.code or DEFAULT_ERROR_CODE


class OrderGateway(Protocol):
    def create_order(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        ...


class RazorpayGateway:
    def __init__(self, key_id: str, key_secret: str, timeout: float = 10.0,
                 client: Optional[razorpay.Client] = None):
        if not key_id or not key_secret:
            raise ValueError("key_id と key_secret は必須です")
        self.timeout = timeout
        self.client = client or razorpay.Client(auth=(key_id, key_secret))

    @classmethod
    def from_settings(cls, settings: GatewaySettings) -> "RazorpayGateway":
        return cls(settings.key_id, settings.key_secret, timeout=settings.timeout_seconds)

    def create_order(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Razorpayで注文を作成する（リトライしない）"""
        try:
            return self.client.order.create(data=payload, timeout=self.timeout)
        except requests.Timeout as e:
            logger.error(f"Razorpay order creation timed out after {self.timeout}s")
            raise GatewayError(str(e), status_code=504,
                               description="Payment gateway timed out",
                               code="GATEWAY_TIMEOUT") from e
        except requests.RequestException as e:
            raise GatewayError(str(e), status_code=502,
                               description="Payment gateway unreachable",
                               code="GATEWAY_UNREACHABLE") from e
        # SDKはHTTPステータスを保持しないため、例外クラスから決める
        except BadRequestError as e:
            raise self._translate(e, 400, "BAD_REQUEST_ERROR") from e
        except RazorpayGatewayError as e:
            raise self._translate(e, 502, "GATEWAY_ERROR") from e
        except ServerError as e:
            raise self._translate(e, 500, "SERVER_ERROR") from e

    @staticmethod
    def _translate(error: Exception, status_code: int, code: str) -> GatewayError:
        description = str(error.args[0]) if error.args and error.args[0] else None
        return GatewayError(description, status_code=status_code,
                            description=description, code=code)


GatewayFactory = Callable[[GatewaySettings], OrderGateway]


def get_gateway_factory() -> GatewayFactory:
    return RazorpayGateway.from_settings
