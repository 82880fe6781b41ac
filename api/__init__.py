import fastapi
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from models.order import ErrorResponse
from . import connection, order
from .order import OrderError
import logging

logger = logging.getLogger(__name__)

# CORSとセキュリティヘッダー（全レスポンスに付与）
RESPONSE_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
}

app = fastapi.FastAPI()


@app.middleware("http")
async def add_response_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers.update(RESPONSE_HEADERS)
    return response


def error_response(status_code: int, body: ErrorResponse, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(exclude_none=True),
        headers=headers,
    )


@app.exception_handler(OrderError)
async def order_error_handler(request: Request, exc: OrderError):
    return error_response(
        exc.status_code,
        ErrorResponse(error=exc.error, code=exc.code, message=exc.message),
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 405:
        return error_response(405, ErrorResponse(error="Method not allowed"), headers=exc.headers)
    return error_response(exc.status_code, ErrorResponse(error=str(exc.detail)), headers=exc.headers)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error")
    return error_response(
        500,
        ErrorResponse(error="Internal server error", code="UNEXPECTED_ERROR",
                      message="An unexpected error occurred"),
        # ServerErrorMiddlewareはadd_response_headersの外側で動くため、ここで付与する
        headers=RESPONSE_HEADERS,
    )


app.include_router(connection.router)
app.include_router(order.router)
