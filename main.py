# main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from config.logging_config import configure_logging
from config.settings import get_settings
from middleware.rate_limit import limiter
from middleware.request_logging import RequestLoggingMiddleware
from routers.holdings_routes import router as holdings_router
from routers.performance_routes import router as performance_router
from routers.portfolio_routes import router as portfolio_router
from routers.settlement_routes import router as settlement_router
from schemas.general import validation_details
from services.errors import PortfolioError
from services.portfolio_service import build_portfolio_service
from utils.common_helpers import utc_now

configure_logging()
logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # state lives only for the life of the process
    app.state.portfolio = build_portfolio_service(settings)
    logger.info(
        "app_started name=%s seed_balance=%.2f allow_overdraft=%s",
        settings.app_name, settings.seed_balance, settings.allow_overdraft,
    )
    try:
        yield
    finally:
        app.state.portfolio.close()
        app.state.portfolio = None
        logger.info("app_stopped")


app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(SlowAPIMiddleware)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)


@app.exception_handler(PortfolioError)
async def portfolio_error_handler(request: Request, exc: PortfolioError):
    if exc.status_code >= 500:
        logger.error("portfolio_error path=%s error=%s message=%s", request.url.path, exc.error, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "error": "Validation Error",
            "message": "Invalid input",
            "details": validation_details(exc),
        },
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    detail = "Route not found" if exc.status_code == 404 and exc.detail == "Not Found" else exc.detail
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled_error path=%s", request.url.path)
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "Internal Error", "message": str(exc)},
    )


@app.get("/api/health")
@limiter.exempt
async def health_check():
    return {"status": "OK", "time": utc_now().isoformat()}


# Include routers
app.include_router(portfolio_router, prefix="/api/portfolio")
app.include_router(holdings_router, prefix="/api/portfolio")
app.include_router(settlement_router, prefix="/api/settlement")
app.include_router(performance_router, prefix="/api/performance")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=settings.host, port=settings.port, reload=False)
