from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.sessions import SessionMiddleware
from contextlib import asynccontextmanager
from pathlib import Path
import uvicorn
from .config import get_settings, load_xero_config
from .exceptions import ConfigNotFoundError, OAuthFlowError
from .routes import auth_router, accounting_router
from .routes.dependencies import error_redirect
from .templating import templates
from .utils.logger import get_logger

# Initialize settings and logger
settings = get_settings()
logger = get_logger(__name__)

ASSETS_DIR = Path(__file__).parent / "assets"

# Form pages re-rendered with the validation error instead of the error page
FORM_TEMPLATES = {
    "/createcontact": "createcontact.html",
    "/createinvoice": "createinvoice.html",
}


# Security Headers Middleware
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        response.headers["Content-Security-Policy"] = (
            "default-src 'self'; "
            "style-src 'self' 'unsafe-inline'; "
            "img-src 'self' data:; "
            "form-action 'self'; "
            "frame-ancestors 'self'; "
            "base-uri 'self'"
        )
        response.headers["X-Frame-Options"] = "SAMEORIGIN"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    logger.info(f"Starting Xero portal in {settings.ENVIRONMENT} environment")
    logger.info(f"Debug mode: {settings.DEBUG}")

    try:
        xero_config = load_xero_config()
        logger.info(f"Xero application type: {xero_config.app_type}")
        logger.debug(f"Callback URL: {xero_config.callback_url}")
    except ConfigNotFoundError:
        logger.warning("No Xero config found; requests will fail until one is provided")

    yield

    logger.info("Shutting down Xero portal")


# Initialize FastAPI app
app = FastAPI(
    title="Xero Portal",
    description="Contacts and invoices from Xero, over OAuth 1.0a",
    version="1.0.0",
    docs_url=None,
    redoc_url=None,
    lifespan=lifespan
)

app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.SESSION_SECRET,
    session_cookie=settings.SESSION_COOKIE,
    https_only=settings.SESSION_HTTPS_ONLY,
    same_site="lax",
)

app.mount("/assets", StaticFiles(directory=str(ASSETS_DIR)), name="assets")

app.include_router(auth_router, tags=["auth"])
app.include_router(accounting_router, tags=["accounting"])


# Error handlers
@app.exception_handler(ConfigNotFoundError)
async def config_not_found_handler(request: Request, exc: ConfigNotFoundError):
    logger.error(f"Xero config missing: {str(exc)}")
    return error_redirect(str(exc))


@app.exception_handler(OAuthFlowError)
async def oauth_flow_error_handler(request: Request, exc: OAuthFlowError):
    logger.error(f"OAuth flow error: {str(exc)}")
    return error_redirect(str(exc))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Render form errors as HTML rather than JSON."""
    messages = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'][1:])}: {error['msg']}" for error in exc.errors()
    )
    logger.info(f"Invalid form submitted to {request.url.path}: {messages}")

    template = FORM_TEMPLATES.get(request.url.path)
    if template:
        return templates.TemplateResponse(
            request, template, {"outcome": "Error", "err": messages}, status_code=422
        )
    return templates.TemplateResponse(request, "index.html", {"error": messages}, status_code=422)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions."""
    logger.error(f"Unhandled error occurred: {str(exc)}", exc_info=exc)
    return templates.TemplateResponse(
        request, "index.html", {"error": "Internal server error"}, status_code=500
    )


# Run the application
if __name__ == "__main__":
    log_config = uvicorn.config.LOGGING_CONFIG
    log_config["formatters"]["access"]["fmt"] = settings.LOG_FORMAT

    logger.info(f"listening on http://localhost:{settings.PORT}")
    uvicorn.run(
        "xero_portal.main:app",
        host=settings.SERVER_HOST,
        port=settings.PORT,
        reload=settings.ENVIRONMENT == "development",
        workers=None if settings.ENVIRONMENT == "development" else settings.WORKERS,
        log_level=settings.LOG_LEVEL.lower(),
        log_config=log_config
    )
