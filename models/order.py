from pydantic import BaseModel, Field, field_validator
from pydantic_core import PydanticCustomError
from typing import Optional, Dict, Any, Literal
from datetime import datetime, timezone
from models.settings import GatewaySettings
from utils.receipt import generate_receipt

Currency = Literal['INR', 'USD', 'EUR']
SUPPORTED_CURRENCIES = ('INR', 'USD', 'EUR')

# 最小通貨単位（パイサ）: ₹1 〜 ₹1,50,000
MIN_AMOUNT = 100
MAX_AMOUNT = 15000000

AMOUNT_REQUIRED_MESSAGE = "Amount is required"
INVALID_AMOUNT_MESSAGE = "Invalid amount. Must be between ₹1 and ₹1,50,000 (in paise: 100-15000000)"
UNSUPPORTED_CURRENCY_MESSAGE = "Unsupported currency. Supported: " + ", ".join(SUPPORTED_CURRENCIES)

# 自動キャプチャ
PAYMENT_CAPTURE_AUTO = 1


class CustomerDetails(BaseModel):
    email: Optional[str] = None
    phone: Optional[str] = None

    model_config = {
        "coerce_numbers_to_str": True
    }


class OrderRequest(BaseModel):
    amount: int = Field(default=None, validate_default=True)  # 金額（パイサ）
    currency: Currency = 'INR'
    customer_details: Optional[CustomerDetails] = None
    order_metadata: Optional[Dict[str, Any]] = None
    receipt: Optional[str] = None
    notes: Optional[Dict[str, Any]] = None

    model_config = {
        "coerce_numbers_to_str": True
    }

    @field_validator('amount', mode='before')
    @classmethod
    def validate_amount(cls, value: Any) -> int:
        if value is None or value is False or value == 0 or value == "":
            raise PydanticCustomError('amount_required', AMOUNT_REQUIRED_MESSAGE)
        # bool は int のサブクラスなので明示的に除外する
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise PydanticCustomError('invalid_amount', INVALID_AMOUNT_MESSAGE)
        if isinstance(value, float) and not value.is_integer():
            raise PydanticCustomError('invalid_amount', INVALID_AMOUNT_MESSAGE)
        if value < MIN_AMOUNT or value > MAX_AMOUNT:
            raise PydanticCustomError('invalid_amount', INVALID_AMOUNT_MESSAGE)
        return int(round(value))

    @field_validator('currency', mode='before')
    @classmethod
    def validate_currency(cls, value: Any) -> str:
        if not isinstance(value, str) or value not in SUPPORTED_CURRENCIES:
            raise PydanticCustomError('unsupported_currency', UNSUPPORTED_CURRENCY_MESSAGE)
        return value


class OrderPayload(BaseModel):
    amount: int
    currency: str
    receipt: str
    payment_capture: int = PAYMENT_CAPTURE_AUTO
    notes: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_request(cls, order_request: OrderRequest, settings: GatewaySettings,
                     now: Optional[datetime] = None) -> "OrderPayload":
        """
        ゲートウェイに送信する注文データを組み立てる

        notesは固定項目 → notes → order_metadata の順にマージし、
        後から書いたキーが優先される。
        """
        now = now or datetime.now(timezone.utc)
        notes: Dict[str, Any] = {
            'source': settings.source_tag,
            'environment': 'LIVE' if settings.is_live else 'TEST',
            'created_at': now.isoformat(timespec='milliseconds').replace('+00:00', 'Z'),
        }
        notes.update(order_request.notes or {})
        notes.update(order_request.order_metadata or {})

        customer = order_request.customer_details
        if customer:
            if customer.email:
                notes['customer_email'] = customer.email
            if customer.phone:
                notes['customer_phone'] = customer.phone

        return cls(
            amount=int(round(order_request.amount)),
            currency=order_request.currency.upper(),
            receipt=order_request.receipt or generate_receipt(now),
            payment_capture=PAYMENT_CAPTURE_AUTO,
            notes=notes,
        )


class OrderResult(BaseModel):
    id: str
    amount: Optional[int] = None
    currency: Optional[str] = None
    receipt: Optional[str] = None
    status: Optional[str] = None
    created_at: Optional[int] = None

    @classmethod
    def from_gateway(cls, order: Dict[str, Any]) -> "OrderResult":
        # ゲートウェイ固有のその他のフィールドは破棄する
        return cls(**{key: order.get(key) for key in cls.model_fields})


class ErrorResponse(BaseModel):
    error: str
    code: Optional[str] = None
    message: Optional[str] = None
