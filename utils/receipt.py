from datetime import datetime, timezone
from typing import Optional
import secrets

RECEIPT_PREFIX = "rcpt"
# Razorpayのreceiptは最大40文字
RECEIPT_MAX_LENGTH = 40


def generate_receipt(now: Optional[datetime] = None) -> str:
    """タイムスタンプ(ミリ秒)と暗号論的乱数を組み合わせたreceiptを生成する"""
    now = now or datetime.now(timezone.utc)
    timestamp_ms = int(now.timestamp() * 1000)
    return f"{RECEIPT_PREFIX}_{timestamp_ms}_{secrets.token_hex(8)}"
