"""HTTP surface for order creation, payment verification and order reads.

Every response is a `{success, ...}` envelope. Domain errors map to status
codes through `OrderPayError.status_code`; anything unclassified is a 500.
"""

from datetime import datetime, timezone
from time import perf_counter
from uuid import uuid4

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from orderpay.common.config import CommonSettings, settings
from orderpay.common.errors import OrderPayError
from orderpay.common.logging import logger, order_id_ctx, request_id_ctx
from orderpay.common.metrics import (
    http_request_duration_seconds,
    http_requests_total,
    metrics_response,
)
from orderpay.services.orders.schemas import (
    CreateOrderRequest,
    CreateOrderResponse,
    HealthResponse,
    MessageResponse,
    OrderListResponse,
    OrderResponse,
    UpdateOrderStatusRequest,
    VerifyPaymentRequest,
)
from orderpay.services.orders.service import OrderService


router = APIRouter(prefix="/api")


def get_service(request: Request) -> OrderService:
    return request.app.state.order_service


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


@router.post("/create-order", response_model=CreateOrderResponse)
def create_order(req: CreateOrderRequest, service: OrderService = Depends(get_service)):
    """Create the gateway order and the matching pending local order."""

    result = service.create_order(
        user_id=req.userId,
        user_email=req.userEmail,
        items=req.items,
        total_amount=req.totalAmount,
        user_details=req.userDetails,
        amount=req.amount,
    )
    return CreateOrderResponse(**result)


@router.post("/verify-payment", response_model=MessageResponse)
def verify_payment(req: VerifyPaymentRequest, service: OrderService = Depends(get_service)):
    """Verify the checkout signature; a mismatch is a 400 with a `message`."""

    result = service.verify_payment(
        razorpay_order_id=req.razorpay_order_id,
        razorpay_payment_id=req.razorpay_payment_id,
        razorpay_signature=req.razorpay_signature,
        firebase_order_id=req.firebaseOrderId,
    )
    if not result.verified:
        return JSONResponse(status_code=400, content={"success": False, "message": result.message})
    return MessageResponse(success=True, message=result.message)


@router.post("/update-order-status", response_model=MessageResponse)
def update_order_status(req: UpdateOrderStatusRequest, service: OrderService = Depends(get_service)):
    service.update_order_status(req.firebaseOrderId, req.status, req.paymentDetails)
    return MessageResponse(success=True, message="Order status updated successfully")


@router.get("/order/{orderId}", response_model=OrderResponse)
def get_order(orderId: str, service: OrderService = Depends(get_service)):
    return OrderResponse(order=service.get_order(orderId))


@router.get("/orders/{userId}", response_model=OrderListResponse)
def list_user_orders(userId: str, service: OrderService = Depends(get_service)):
    """Orders for one user, newest first. No orders is not an error."""

    return OrderListResponse(orders=service.list_orders_for_user(userId))


@router.get("/health", response_model=HealthResponse)
def health():
    """Liveness probe."""

    now = datetime.now(timezone.utc)
    return HealthResponse(timestamp=now.isoformat(timespec="milliseconds").replace("+00:00", "Z"))


def install_error_handlers(app: FastAPI) -> None:
    """Map every failure onto the `{success: false, error}` envelope."""

    @app.exception_handler(OrderPayError)
    async def order_pay_error(request: Request, exc: OrderPayError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        else:
            logger.warning("%s %s rejected: %s", request.method, request.url.path, exc.message)
        return _error(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        detail = "Invalid request body"
        if errors:
            loc = ".".join(str(part) for part in errors[0].get("loc", ()) if part != "body")
            detail = f"Invalid request body: {loc or 'body'}: {errors[0].get('msg')}"
        logger.warning("%s %s rejected: %s", request.method, request.url.path, detail)
        return _error(400, detail)

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        # Unknown paths and unsupported methods both read as a missing endpoint.
        if exc.status_code in (404, 405):
            return _error(404, "Endpoint not found")
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        logger.exception("unhandled error on %s %s", request.method, request.url.path)
        return _error(500, "Internal server error")


def create_app(service: OrderService, config: CommonSettings = settings, lifespan=None) -> FastAPI:
    """Build the ASGI app around an already-wired `OrderService`."""

    app = FastAPI(title="OrderPay API", lifespan=lifespan)
    app.state.order_service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next):
        """Tag logs with a request id and record request count and latency."""

        request_id_ctx.set(request.headers.get("x-request-id") or str(uuid4()))
        order_id_ctx.set("")
        start = perf_counter()
        route = "unmatched"
        method = request.method
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            route_obj = request.scope.get("route")
            if route_obj is not None and getattr(route_obj, "path", None):
                route = route_obj.path
            response.headers["x-request-id"] = request_id_ctx.get()
            return response
        finally:
            elapsed = max(0.0, perf_counter() - start)
            http_request_duration_seconds.labels(
                service=config.service_name,
                route=route,
                method=method,
            ).observe(elapsed)
            http_requests_total.labels(
                service=config.service_name,
                route=route,
                method=method,
                status_code=str(status_code),
            ).inc()

    install_error_handlers(app)
    app.include_router(router)

    @app.get("/metrics", include_in_schema=False)
    def metrics():
        """Prometheus scrape endpoint."""

        return metrics_response()

    return app
