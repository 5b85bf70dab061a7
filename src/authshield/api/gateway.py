"""API Gateway - FastAPI application exposing the defense controls.

Expected outcomes (lockout, session cap reached) are 200 responses with
the structured result. Storage faults are 503: the controls fail closed.
"""

import os, threading
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, List, Optional
from uuid import uuid4

from fastapi import Body, Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from authshield.api.schemas import (
    AttemptCheckRequest,
    AttemptResultRequest,
    AttemptStatisticsResponse,
    CountResponse,
    ErrorResponse,
    LogoutResponse,
    OperationResponse,
    RecordLoginRequest,
    RegisterSessionRequest,
    TrustDeviceRequest,
    TrustDeviceResponse,
)
from authshield.api.service import DefenseService
from authshield.common.config import get_config
from authshield.common.constants import RiskConstants
from authshield.common.exceptions import AuthShieldException, StorageError, ValidationError
from authshield.common.logging import get_logger
from authshield.controls.backoff import AttemptDecision
from authshield.data.schemas import (
    DelayConfig,
    LoginAlertConfig,
    LoginEvent,
    LoginStatistics,
    SessionConfig,
    SessionInfo,
    SessionRegistration,
    SessionStatistics,
)

logger = get_logger("authshield_api")


class ServiceManager:
    """Thread-safe service singleton manager."""
    
    _instance: Optional[DefenseService] = None
    _lock = threading.Lock()
    _initialized = False
    
    @classmethod
    def get_service(cls) -> DefenseService:
        """Get or create the defense service instance (thread-safe)."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = DefenseService()
                    cls._initialized = True
                    logger.info("DefenseService initialized")
        return cls._instance
    
    @classmethod
    def install(cls, service: DefenseService) -> None:
        """Use a pre-built service (embedding and tests)."""
        with cls._lock:
            cls._instance = service
            cls._initialized = True
    
    @classmethod
    def shutdown(cls) -> None:
        """Shutdown the service and release resources."""
        with cls._lock:
            if cls._instance is not None:
                cls._instance.shutdown()
                cls._instance = None
                cls._initialized = False


def get_service() -> DefenseService:
    """Get the defense service instance."""
    return ServiceManager.get_service()


# =============================================================================
# CORS CONFIGURATION
# =============================================================================

def get_cors_origins() -> List[str]:
    """Get allowed CORS origins from environment.
    
    Set AUTHSHIELD_CORS_ORIGINS to a comma-separated list of origins.
    Without it, only development runs allow every origin.
    """
    origins_env = os.environ.get("AUTHSHIELD_CORS_ORIGINS", "")
    
    if origins_env:
        return [origin.strip() for origin in origins_env.split(",") if origin.strip()]
    
    config = get_config()
    if not config.is_development:
        logger.warning(
            f"AUTHSHIELD_CORS_ORIGINS not set in {config.environment.value}. CORS will be disabled."
        )
        return []
    
    logger.warning("Running in development mode with permissive CORS (allow_origins=['*'])")
    return ["*"]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    logger.info("AuthShield API starting up...")
    get_service()
    logger.info("AuthShield API ready")
    
    yield
    
    logger.info("AuthShield API shutting down...")
    ServiceManager.shutdown()


enable_docs_default = "false" if get_config().is_production else "true"
enable_docs = os.environ.get("AUTHSHIELD_ENABLE_DOCS", enable_docs_default).lower() == "true"

app = FastAPI(
    title="AuthShield API",
    description="Adaptive authentication defense: backoff, login risk alerts, session control.",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if enable_docs else None,
    redoc_url="/redoc" if enable_docs else None,
)


cors_origins = get_cors_origins()
if cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
    )


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

def _error(request: Request, status_code: int, error: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error=error,
            message=message,
            request_id=getattr(request.state, "request_id", None),
        ).model_dump(),
    )


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    """State backend unavailable: fail closed."""
    logger.error(
        "Storage failure",
        extra={"request_id": getattr(request.state, "request_id", None), "error": exc.message},
    )
    return _error(request, 503, "storage_unavailable", "State storage is unavailable")


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    logger.warning("Validation error", extra={"error": exc.message})
    return JSONResponse(
        status_code=400,
        content={
            **ErrorResponse(
                error="validation_error",
                message=exc.message,
                request_id=getattr(request.state, "request_id", None),
            ).model_dump(),
            "details": exc.details,
        },
    )


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    """Handle validation errors."""
    logger.warning("Validation error", extra={"error": str(exc)})
    return _error(request, 400, "validation_error", str(exc))


@app.exception_handler(AuthShieldException)
async def authshield_error_handler(request: Request, exc: AuthShieldException) -> JSONResponse:
    logger.error("Request failed", extra={"code": exc.code, "error": exc.message})
    return _error(request, 500, exc.code.lower(), exc.message)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected errors.
    
    Logs full exception for debugging but returns sanitized message to client.
    """
    logger.exception(
        "Unexpected error",
        extra={"request_id": getattr(request.state, "request_id", None), "error_type": type(exc).__name__},
    )
    return _error(request, 500, "internal_error", "An unexpected error occurred")


# =============================================================================
# MIDDLEWARE
# =============================================================================

@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Add request ID to each request for tracing."""
    request_id = f"req_{uuid4().hex[:12]}"
    request.state.request_id = request_id
    
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


# =============================================================================
# BACKOFF / LOCKOUT
# =============================================================================

@app.post("/attempts/check", response_model=AttemptDecision)
def check_attempt(
    request: AttemptCheckRequest, service: DefenseService = Depends(get_service)
) -> AttemptDecision:
    """Whether an attempt for this identifier may proceed now."""
    return service.backoff.check_allowed(request.identifier)


@app.post("/attempts/result", response_model=AttemptDecision)
def record_attempt_result(
    request: AttemptResultRequest, service: DefenseService = Depends(get_service)
) -> AttemptDecision:
    return service.backoff.record_result(request.identifier, request.success)


@app.delete("/attempts", response_model=CountResponse)
def clear_attempts(
    identifier: Optional[str] = None, service: DefenseService = Depends(get_service)
) -> CountResponse:
    """Admin override: clear one identifier, or every identifier if none given."""
    return CountResponse(count=service.backoff.clear(identifier))


@app.get("/attempts/statistics", response_model=AttemptStatisticsResponse)
def attempt_statistics(service: DefenseService = Depends(get_service)) -> AttemptStatisticsResponse:
    return AttemptStatisticsResponse(**service.backoff.get_statistics())


# =============================================================================
# LOGIN RISK
# =============================================================================

@app.post("/logins", response_model=LoginEvent)
def record_login(
    request: RecordLoginRequest, service: DefenseService = Depends(get_service)
) -> LoginEvent:
    event = service.risk.record_login(
        request.user_id,
        request.success,
        request.device,
        ip_address=request.ip_address,
        location=request.location,
        is_vpn=request.is_vpn,
    )
    logger.info(
        "Login recorded",
        extra={"user_id": request.user_id, "risk_level": event.risk_level.value},
    )
    return event


@app.get("/users/{user_id}/logins", response_model=List[LoginEvent])
def login_history(
    user_id: str,
    limit: int = RiskConstants.DEFAULT_HISTORY_PAGE,
    service: DefenseService = Depends(get_service),
) -> List[LoginEvent]:
    return service.risk.get_login_history(user_id, limit)


@app.get("/alerts", response_model=List[LoginEvent])
def pending_alerts(
    user_id: Optional[str] = None, service: DefenseService = Depends(get_service)
) -> List[LoginEvent]:
    return service.risk.get_pending_alerts(user_id)


@app.delete("/alerts/{alert_id}", response_model=OperationResponse)
def dismiss_alert(
    alert_id: str,
    user_id: Optional[str] = None,
    service: DefenseService = Depends(get_service),
) -> OperationResponse:
    return OperationResponse(success=service.risk.dismiss_alert(alert_id, user_id))


@app.delete("/users/{user_id}/alerts", response_model=CountResponse)
def dismiss_all_alerts(user_id: str, service: DefenseService = Depends(get_service)) -> CountResponse:
    return CountResponse(count=service.risk.dismiss_all_alerts(user_id))


@app.post("/users/{user_id}/trusted-devices", response_model=TrustDeviceResponse)
def trust_device(
    user_id: str, request: TrustDeviceRequest, service: DefenseService = Depends(get_service)
) -> TrustDeviceResponse:
    return TrustDeviceResponse(device_fingerprint=service.risk.trust_device(user_id, request.device))


@app.get("/users/{user_id}/login-statistics", response_model=LoginStatistics)
def login_statistics(user_id: str, service: DefenseService = Depends(get_service)) -> LoginStatistics:
    return service.risk.get_statistics(user_id)


# =============================================================================
# SESSIONS
# =============================================================================

@app.post("/users/{user_id}/sessions", response_model=SessionRegistration)
def register_session(
    user_id: str,
    request: Optional[RegisterSessionRequest] = None,
    service: DefenseService = Depends(get_service),
) -> SessionRegistration:
    request = request or RegisterSessionRequest()
    return service.sessions.register_session(
        user_id,
        ip_address=request.ip_address,
        location=request.location,
        device=request.device,
        session_id=request.session_id,
    )


@app.get("/users/{user_id}/sessions", response_model=List[SessionInfo])
def user_sessions(
    user_id: str,
    current_session_id: Optional[str] = None,
    service: DefenseService = Depends(get_service),
) -> List[SessionInfo]:
    return service.sessions.get_user_sessions(user_id, current_session_id)


@app.get("/users/{user_id}/session-statistics", response_model=SessionStatistics)
def session_statistics(user_id: str, service: DefenseService = Depends(get_service)) -> SessionStatistics:
    return service.sessions.get_statistics(user_id)


@app.post("/users/{user_id}/sessions/{session_id}/activity", response_model=OperationResponse)
def session_activity(
    user_id: str, session_id: str, service: DefenseService = Depends(get_service)
) -> OperationResponse:
    return OperationResponse(success=service.sessions.update_activity(user_id, session_id))


@app.delete("/users/{user_id}/sessions/{session_id}", response_model=OperationResponse)
def terminate_session(
    user_id: str, session_id: str, service: DefenseService = Depends(get_service)
) -> OperationResponse:
    return OperationResponse(success=service.sessions.terminate_session(user_id, session_id))


@app.post("/users/{user_id}/sessions/{session_id}/terminate-others", response_model=CountResponse)
def terminate_other_sessions(
    user_id: str, session_id: str, service: DefenseService = Depends(get_service)
) -> CountResponse:
    return CountResponse(count=service.sessions.terminate_other_sessions(user_id, session_id))


@app.post("/users/{user_id}/sessions/{session_id}/logout", response_model=LogoutResponse)
def logout(
    user_id: str, session_id: str, service: DefenseService = Depends(get_service)
) -> LogoutResponse:
    return LogoutResponse(session_id=service.sessions.logout(user_id, session_id))


# =============================================================================
# ADMIN CONFIGURATION
# =============================================================================

@app.get("/config/delay", response_model=DelayConfig)
def get_delay_config(service: DefenseService = Depends(get_service)) -> DelayConfig:
    return service.backoff.get_config()


@app.put("/config/delay", response_model=DelayConfig)
def update_delay_config(
    changes: Dict[str, Any] = Body(...), service: DefenseService = Depends(get_service)
) -> DelayConfig:
    return service.backoff.update_config(**changes)


@app.get("/config/alerts", response_model=LoginAlertConfig)
def get_alert_config(service: DefenseService = Depends(get_service)) -> LoginAlertConfig:
    return service.risk.get_config()


@app.put("/config/alerts", response_model=LoginAlertConfig)
def update_alert_config(
    changes: Dict[str, Any] = Body(...), service: DefenseService = Depends(get_service)
) -> LoginAlertConfig:
    return service.risk.update_config(**changes)


@app.get("/config/sessions", response_model=SessionConfig)
def get_session_config(service: DefenseService = Depends(get_service)) -> SessionConfig:
    return service.sessions.get_config()


@app.put("/config/sessions", response_model=SessionConfig)
def update_session_config(
    changes: Dict[str, Any] = Body(...), service: DefenseService = Depends(get_service)
) -> SessionConfig:
    return service.sessions.update_config(**changes)


# =============================================================================
# PROBES
# =============================================================================

@app.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "healthy", "service": "authshield"}


@app.get("/ready")
def readiness_check() -> dict:
    """Readiness check endpoint.

    Returns 503 until the service is initialized and its store is reachable.
    """
    if not ServiceManager._initialized or not get_service().is_ready():
        raise HTTPException(status_code=503, detail="not_ready")
    return {"status": "ready", "service": "authshield"}


# =============================================================================
# DEVELOPMENT SERVER
# =============================================================================

if __name__ == "__main__":
    import uvicorn
    
    uvicorn.run(
        "authshield.api.gateway:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info",
    )
