"""
Clinic Psychometrics API

Stores and scores SCL-90 symptom checklists for clinic medical orders.

This API provides:
- Storage of SCL-90 answers per medical order
- Automatic rescoring whenever answers are saved
- Dimension averages, global indices and gender-normed interpretation
- Comprehensive logging and observability
"""

import time
from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config.config import Settings, get_settings
from config.logging_config import configure_logging, get_logger, log_request_context
from database.database import close_connection, ping
from models.models import (
    DimensionInfo,
    ErrorResponse,
    HealthResponse,
    HealthStatus,
    Scl90RecordResponse,
    Scl90ReferenceResponse,
    Scl90SaveResponse,
    Scl90ScoreResponse,
    Scl90Submission,
)
from services.scl90_service import (
    AssessmentNotFoundError,
    OrderNotFoundError,
    Scl90Service,
    get_scl90_service,
)
from services.scl90_tables import DIMENSION_ITEMS, DIMENSION_NAMES, NORMS, SCORED_DIMENSIONS

# Configure logging before anything else
configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events with proper logging.
    """
    settings = get_settings()

    # Startup
    logger.info(
        "Application starting",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
        config=settings.get_safe_config_dict(),
    )

    yield

    # Shutdown
    close_connection()
    logger.info("Application shutting down")


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Optional settings override for testing.

    Returns:
        Configured FastAPI application.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        description=__doc__,
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request logging middleware
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all requests with timing and context."""
        request_id = str(uuid4())
        start_time = time.perf_counter()

        # Bind request context for all logs in this request
        log_request_context(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        request.state.request_id = request_id

        response = await call_next(request)

        processing_time = int((time.perf_counter() - start_time) * 1000)
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Processing-Time-Ms"] = str(processing_time)

        logger.info(
            "Request completed",
            status_code=response.status_code,
            processing_time_ms=processing_time,
        )

        return response

    # Exception handlers
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        """Handle HTTP exceptions with structured response."""
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error=f"HTTP_{exc.status_code}",
                message=str(exc.detail),
                request_id=getattr(request.state, "request_id", None),
            ).model_dump(mode="json"),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle request validation failures with structured response."""
        errors = jsonable_encoder(exc.errors())
        logger.info("Request validation failed", error_count=len(errors))
        return JSONResponse(
            status_code=422,
            content=ErrorResponse(
                error="VALIDATION_ERROR",
                message="Request validation failed",
                details={"errors": errors},
                request_id=getattr(request.state, "request_id", None),
            ).model_dump(mode="json"),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        logger.exception("Unhandled exception", error=str(exc))
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error="INTERNAL_ERROR",
                message="An unexpected error occurred",
                request_id=getattr(request.state, "request_id", None),
            ).model_dump(mode="json"),
        )

    # Register routes
    register_routes(app)

    return app


def register_routes(app: FastAPI) -> None:
    """Register all API routes."""

    @app.get("/", tags=["Root"])
    async def root():
        """Root endpoint with API information."""
        settings = get_settings()
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "status": "operational",
            "docs": "/docs" if settings.debug else "disabled",
        }

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    def health_check(settings: Settings = Depends(get_settings)) -> HealthResponse:
        """
        Health check endpoint for monitoring.

        Sync route: the database ping blocks, so it runs in the threadpool.

        Returns system health status and component checks.
        """
        checks = {
            "api": True,
            "database": ping(),
        }

        if all(checks.values()):
            status = HealthStatus.HEALTHY
        elif checks["api"]:
            status = HealthStatus.DEGRADED
        else:
            status = HealthStatus.UNHEALTHY

        return HealthResponse(
            status=status,
            version=settings.app_version,
            environment=settings.environment,
            checks=checks,
        )

    # Registered before /{orden_id} so the literal path wins
    @app.get("/api/v1/scl90/baremos", response_model=Scl90ReferenceResponse, tags=["SCL-90"])
    async def get_scl90_reference() -> Scl90ReferenceResponse:
        """
        Get the SCL-90 dimension table and gender norms.

        Norms are (pc50, pc85) cutoffs on the 0-4 average item scale.
        """
        dimensiones = [
            DimensionInfo(
                codigo=dim.value,
                nombre=DIMENSION_NAMES[dim],
                items=list(items),
                puntuable=dim in SCORED_DIMENSIONS,
            )
            for dim, items in DIMENSION_ITEMS.items()
        ]
        baremos = {
            gender.value: {dim.value: norm.model_dump() for dim, norm in table.items()}
            for gender, table in NORMS.items()
        }
        return Scl90ReferenceResponse(dimensiones=dimensiones, baremos=baremos)

    @app.get("/api/v1/scl90/{orden_id}", response_model=Scl90RecordResponse, tags=["SCL-90"])
    def get_scl90(
        orden_id: str,
        service: Scl90Service = Depends(get_scl90_service),
    ) -> Scl90RecordResponse:
        """
        Get the SCL-90 assessment of a medical order.

        When the order has no assessment yet, `data` is null and the patient
        header is taken from the order.
        """
        try:
            assessment, paciente = service.get_assessment(orden_id)
        except OrderNotFoundError:
            raise HTTPException(status_code=404, detail="Orden no encontrada")

        return Scl90RecordResponse(data=assessment, paciente=paciente)

    @app.post("/api/v1/scl90", response_model=Scl90SaveResponse, tags=["SCL-90"])
    def save_scl90(
        submission: Scl90Submission,
        service: Scl90Service = Depends(get_scl90_service),
    ) -> Scl90SaveResponse:
        """
        Create or update the SCL-90 answers of a medical order.

        Answers are posted as item1..item90 (0-4). The score is recomputed
        from the full response set and stored with the answers.
        """
        logger.info("SCL-90 save request received", orden_id=submission.orden_id)

        stored, operation = service.save_assessment(submission)
        return Scl90SaveResponse(data=stored, operacion=operation)

    @app.post(
        "/api/v1/scl90/{orden_id}/calificar",
        response_model=Scl90ScoreResponse,
        tags=["SCL-90"],
    )
    def calificar_scl90(
        orden_id: str,
        service: Scl90Service = Depends(get_scl90_service),
    ) -> Scl90ScoreResponse:
        """
        Score the stored SCL-90 answers of a medical order.

        Gender is read from the patient's latest intake form, then from the
        order; unknown genders use the masculino norms.
        """
        try:
            result = service.calificar(orden_id)
        except AssessmentNotFoundError:
            raise HTTPException(status_code=404, detail="Prueba SCL-90 no encontrada")

        return Scl90ScoreResponse(
            orden_id=orden_id,
            resultado=result.resultado(),
            interpretacion=result.interpretacion(),
            baremos=result.baremos(),
            genero=result.gender.value,
            genero_por_defecto=result.gender_fallback,
        )


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
