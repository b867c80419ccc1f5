"""FastAPI application exposing the PIX codec."""
from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse, Response

from .config import DEFAULT_PIX_KEY, settings
from .logging_conf import configure_logging
from .middleware import RequestLoggingMiddleware
from .monitoring import metrics_payload, record_service_error
from .schemas import (
    CreatePaymentRequest,
    GeneratePixCodeRequest,
    ParsedPixResponse,
    PaymentResponse,
    PaymentStatusResponse,
    PixCodeRequest,
    PixCodeResponse,
    ValidateResponse,
)
from .services.errors import ServiceError
from .services.payments import PixPaymentService
from .services.status import SimulatedStatusProvider

app = FastAPI(title="pixcode", version="0.1.0")
app.add_middleware(RequestLoggingMiddleware)

logger = logging.getLogger("pixcode.api")


def _warn_insecure_defaults() -> None:
    if settings.pix_key == DEFAULT_PIX_KEY:
        logger.warning(
            "pix key is using the default value",
            extra={"config_key": "pix_key"},
        )
    if settings.status_provider == "simulated":
        logger.warning(
            "payment status is simulated and must not be trusted",
            extra={"config_key": "status_provider"},
        )


@app.on_event("startup")
async def on_startup() -> None:
    configure_logging()
    _warn_insecure_defaults()


@lru_cache(maxsize=1)
def get_payment_service() -> PixPaymentService:
    return PixPaymentService()


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    route = request.scope.get("route")
    route_path = route.path if route else request.url.path
    logger.warning(
        "service error",
        extra={"code": exc.code, "path": route_path, "method": request.method},
    )
    record_service_error(exc.code, route_path)
    return JSONResponse(status_code=exc.status_code, content={"code": exc.code, "message": exc.message})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    route = request.scope.get("route")
    route_path = route.path if route else request.url.path
    logger.exception(
        "unhandled exception",
        extra={"path": route_path, "method": request.method},
    )
    return JSONResponse(status_code=500, content={"code": "ERR_INTERNAL", "message": "Internal server error"})


@app.get("/health", tags=["system"])
async def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/metrics", tags=["system"])
async def metrics() -> Response:
    payload, content_type = metrics_payload()
    return Response(content=payload, media_type=content_type)


@app.post("/v1/pix/codes", response_model=PixCodeResponse, tags=["pix"])
async def generate_pix_code(
    payload: GeneratePixCodeRequest,
    service: PixPaymentService = Depends(get_payment_service),
) -> PixCodeResponse:
    code = service.generate_pix_code(payload.amount, payload.description, payload.tx_id)
    return PixCodeResponse(
        pix_code=code.pix_code,
        tx_id=code.tx_id,
        amount=code.amount,
        qr_code_data=code.qr_code_data,
        crc=code.crc,
    )


@app.post("/v1/pix/validate", response_model=ValidateResponse, tags=["pix"])
async def validate_pix_code(
    payload: PixCodeRequest,
    service: PixPaymentService = Depends(get_payment_service),
) -> ValidateResponse:
    return ValidateResponse(valid=service.validate_pix_code(payload.code))


@app.post("/v1/pix/parse", response_model=ParsedPixResponse, response_model_exclude_none=True, tags=["pix"])
async def parse_pix_code(
    payload: PixCodeRequest,
    service: PixPaymentService = Depends(get_payment_service),
) -> ParsedPixResponse:
    parsed = service.parse_pix_code(payload.code)
    return ParsedPixResponse.model_validate(parsed.to_dict())


@app.post("/v1/pix/payments", response_model=PaymentResponse, status_code=201, tags=["payments"])
async def create_pix_payment(
    payload: CreatePaymentRequest,
    service: PixPaymentService = Depends(get_payment_service),
) -> PaymentResponse:
    result = await service.create_pix_payment(payload.amount, payload.description, payload.plan_id)
    return PaymentResponse(
        pix_code=result.pix_code,
        tx_id=result.tx_id,
        amount=result.amount,
        qr_code_image=result.qr_code_image,
        expires_at=result.expires_at,
        description=result.description,
        plan_id=result.plan_id,
    )


@app.get("/v1/pix/payments/{tx_id}/status", response_model=PaymentStatusResponse, tags=["payments"])
async def check_pix_payment(
    tx_id: str,
    service: PixPaymentService = Depends(get_payment_service),
) -> PaymentStatusResponse:
    result = await service.check_pix_payment(tx_id)
    return PaymentStatusResponse(
        tx_id=result.tx_id,
        status=result.status,
        paid_at=result.paid_at,
        amount=result.amount,
        simulated=isinstance(service.status_provider, SimulatedStatusProvider),
    )
