# backend/app/main.py
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException
import time
import uuid
import asyncio

from app.core.config import settings
from app.core.logging import logger
from app.core.errors import AppError, ErrorCode, InvalidParameterFormat, InvalidRequestBody
from app.core.rate_limiter import limiter, rate_limit_exceeded_handler
from app.core.websocket_manager import ConnectionRegistry
from app.db.database import init_db, close_db
from app.api.v1.router import api_router
from app.api.v1 import websocket
from app.core.audit_log import AuditEventType, audit_logger
from app.services.email_service import EmailService
from app.services.insights_service import BehavioralInsightsService
from app.services.notification_dispatcher import NotificationDispatcher

# Status codes raised by the framework itself (unknown route, wrong method)
HTTP_ERROR_CODES = {
    401: ErrorCode.AUTHENTICATION_REQUIRED,
    404: ErrorCode.NOT_FOUND,
    405: ErrorCode.INVALID_REQUEST_BODY,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"Starting {settings.PROJECT_NAME}")
    await init_db()

    registry = ConnectionRegistry()
    dispatcher = NotificationDispatcher(registry, EmailService())
    await dispatcher.start()
    app.state.connection_registry = registry
    app.state.notification_dispatcher = dispatcher
    app.state.insights_service = BehavioralInsightsService()

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.PROJECT_NAME}", extra={"dispatcher": dispatcher.stats()})
    await dispatcher.stop()
    await registry.close_all()
    await close_db()


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    docs_url=("/api/docs" if settings.ENVIRONMENT == "development" else None),
    redoc_url=("/api/redoc" if settings.ENVIRONMENT == "development" else None),
    lifespan=lifespan
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request timing middleware
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    return response


# Include routers
app.include_router(api_router, prefix=settings.API_V1_STR)
# Websocket routes
app.include_router(websocket.router, prefix=settings.API_V1_STR, tags=["websocket"])


@app.get("/health")
async def health_check(request: Request):
    """Health check endpoint"""
    dispatcher = getattr(request.app.state, "notification_dispatcher", None)
    return {
        "status": "healthy",
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT,
        "notifications": dispatcher.stats() if dispatcher else None,
    }


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Body problems are INVALID_REQUEST_BODY; path/query problems INVALID_PARAMETER_FORMAT"""
    details = []
    in_body = False
    for error in exc.errors():
        loc = error.get("loc", ())
        if loc and loc[0] == "body":
            in_body = True
        details.append({
            "field": ".".join(str(part) for part in loc[1:]) or str(loc[0] if loc else ""),
            "message": error.get("msg"),
            "code": error.get("type"),
        })
    error_cls = InvalidRequestBody if in_body else InvalidParameterFormat
    error = error_cls(details=details)
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    code = HTTP_ERROR_CODES.get(exc.status_code, ErrorCode.INTERNAL_ERROR)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": code.value, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler"""
    logger.exception(
        "Unhandled exception while handling request",
        exc_info=exc,
        extra={"request_id": getattr(request.state, "request_id", None)},
    )
    return JSONResponse(
        status_code=500,
        content={"error": ErrorCode.INTERNAL_ERROR.value, "message": "Internal server error"},
    )


@app.middleware("http")
async def audit_log_request_middleware(request: Request, call_next):
    """Automatically log all API requests but avoid blocking or crashing the request flow"""
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    start_time = time.time()
    response = await call_next(request)
    duration = time.time() - start_time

    ip_address = request.client.host if getattr(request, "client", None) else None

    try:
        await asyncio.wait_for(
            audit_logger.log_event(
                event_type=AuditEventType.API_REQUEST,
                user_id=getattr(request.state, "user_id", None),
                tenant_id=getattr(request.state, "tenant_id", None),
                details={
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": response.status_code,
                    "duration_ms": duration * 1000
                },
                ip_address=ip_address,
                user_agent=request.headers.get("user-agent"),
                request_id=request_id
            ),
            timeout=2.0,
        )
    except asyncio.TimeoutError:
        logger.warning("Audit logging timed out (ignored)")
    except Exception:
        logger.exception("Failed to write audit log (ignored)")

    response.headers["X-Request-ID"] = request_id
    return response
