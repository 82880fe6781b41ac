from fastapi import APIRouter, Depends, Request, Response
from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError
from typing import Any, Dict, Optional
from datetime import datetime, timezone
from models.order import OrderRequest, OrderPayload, OrderResult
from models.settings import GatewaySettings, get_settings
from managers.gateway_manager import (
    DEFAULT_ERROR_CODE,
    DEFAULT_ERROR_MESSAGE,
    GatewayError,
    GatewayFactory,
    get_gateway_factory,
)
import json
import logging

# ログ設定
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

router = APIRouter()

MISSING_CREDENTIALS_MESSAGE = "Payment gateway not configured. Please contact support."

# バリデーションエラーの種類 → レスポンスのエラーコード
VALIDATION_ERROR_CODES = {
    "amount_required": "AMOUNT_REQUIRED",
    "invalid_amount": "INVALID_AMOUNT",
    "unsupported_currency": "UNSUPPORTED_CURRENCY",
}


class OrderError(Exception):
    """JSONエラーレスポンスに変換される例外"""

    def __init__(self, status_code: int, error: str, code: Optional[str] = None,
                 message: Optional[str] = None):
        super().__init__(error)
        self.status_code = status_code
        self.error = error
        self.code = code
        self.message = message


async def parse_body(request: Request) -> Dict[str, Any]:
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        body = json.loads(raw)
    except ValueError:
        raise OrderError(400, "Invalid JSON body", "INVALID_REQUEST_BODY")
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise OrderError(400, "Invalid JSON body", "INVALID_REQUEST_BODY")
    return body


def to_order_request(body: Dict[str, Any]) -> OrderRequest:
    try:
        return OrderRequest.model_validate(body)
    except ValidationError as e:
        # フィールド定義順（amount → currency → その他）の最初のエラーを返す
        first = e.errors()[0]
        code = VALIDATION_ERROR_CODES.get(first["type"])
        if code:
            raise OrderError(400, first["msg"], code)
        field = ".".join(str(loc) for loc in first["loc"])
        raise OrderError(400, f"Invalid {field}: {first['msg']}", "INVALID_REQUEST")


@router.options("/create-order", tags=["orders"])
async def create_order_preflight():
    return Response(status_code=200)


@router.post("/create-order", response_model=OrderResult, tags=["orders"])
async def create_order(
    request: Request,
    settings: GatewaySettings = Depends(get_settings),
    gateway_factory: GatewayFactory = Depends(get_gateway_factory),
):
    """ゲートウェイで支払い注文を作成する"""
    logger.info(f"Create order request received: {datetime.now(timezone.utc).isoformat()}")

    try:
        logger.info(
            f"Environment check: has_key_id={bool(settings.key_id)} "
            f"has_key_secret={bool(settings.key_secret)} key_id_prefix={settings.masked_key_id()}"
        )
        if not settings.has_credentials:
            logger.error("Razorpay credentials not found in environment variables")
            raise OrderError(500, MISSING_CREDENTIALS_MESSAGE, "MISSING_CREDENTIALS")

        try:
            gateway = gateway_factory(settings)
        except Exception as e:
            logger.error(f"Payment gateway initialization failed: {type(e).__name__}")
            raise OrderError(500, "Payment gateway initialization failed", "GATEWAY_INIT_FAILED")

        body = await parse_body(request)
        logger.info(
            f"Order request details: amount={body.get('amount')} currency={body.get('currency', 'INR')} "
            f"has_customer_details={bool(body.get('customer_details'))} "
            f"has_order_metadata={bool(body.get('order_metadata'))}"
        )
        order_request = to_order_request(body)

        payload = OrderPayload.from_request(order_request, settings)
        logger.info(
            f"Creating order: amount={payload.amount} currency={payload.currency} "
            f"receipt={payload.receipt} notes_count={len(payload.notes)}"
        )

        try:
            order = await run_in_threadpool(gateway.create_order, payload.model_dump())
        except GatewayError as e:
            logger.error(f"Order creation failed: status={e.status_code} code={e.code} message={e}")
            raise OrderError(e.http_status, e.error_message, e.error_code)
        except Exception as e:
            logger.error(f"Order creation failed: {e}")
            raise OrderError(500, str(e) or DEFAULT_ERROR_MESSAGE, DEFAULT_ERROR_CODE)

        result = OrderResult.from_gateway(order)
        logger.info(f"Order created: id={result.id} status={result.status} receipt={result.receipt}")
        return result

    except OrderError:
        raise
    except Exception as e:
        logger.exception("Unexpected error in create-order")
        raise OrderError(
            500,
            "Internal server error",
            "UNEXPECTED_ERROR",
            message="An unexpected error occurred" if settings.is_production else str(e),
        )
