from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from asset_palette import __version__
from asset_palette.core.config import settings
from asset_palette.core.exceptions import StatementError
from asset_palette.core.logging_config import get_logger, setup_logging
from asset_palette.core.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from asset_palette.routers import portfolio
from asset_palette.services.session_service import PortfolioSession

logger = get_logger(__name__)


def create_app() -> FastAPI:
    setup_logging()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=__version__,
        description="Turns brokerage asset balance CSVs into aggregated portfolio views",
        docs_url=f"{settings.API_V1_STR}/docs",
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
    )
    app.state.portfolio_session = PortfolioSession()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["Content-Type"],
        max_age=3600,
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(portfolio.router, prefix=settings.API_V1_STR)

    @app.get("/health", tags=["Health"])
    async def health_check():
        return {"status": "healthy", "service": settings.PROJECT_NAME}

    @app.exception_handler(StatementError)
    async def statement_error_handler(request: Request, exc: StatementError):
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "detail": str(exc.cause),
                "error_code": exc.error_code,
                "filename": exc.filename,
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Log the real error; never send internals to the client."""
        logger.exception("Unhandled exception", extra={"path": request.url.path})
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An internal error occurred. Please try again later.",
                "error_code": "INTERNAL_SERVER_ERROR",
            },
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "asset_palette.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
