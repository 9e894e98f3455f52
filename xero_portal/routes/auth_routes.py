from typing import Optional
from datetime import datetime
from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from ..config import XeroAppConfig
from ..core import session as session_store
from ..templating import templates
from ..utils.logger import get_logger
from .dependencies import ClientFactory, error_redirect, get_client_factory, get_xero_config

logger = get_logger(__name__)
router = APIRouter()


@router.get("/", include_in_schema=False)
async def home() -> RedirectResponse:
    return RedirectResponse(url="/invoices", status_code=302)


@router.get("/error", response_class=HTMLResponse)
async def error_page(request: Request, error: Optional[str] = None):
    logger.info(f"Error page: {error}")
    return templates.TemplateResponse(request, "index.html", {"error": error})


@router.get("/access")
async def access(
    request: Request,
    oauth_verifier: Optional[str] = None,
    config: XeroAppConfig = Depends(get_xero_config),
    client_factory: ClientFactory = Depends(get_client_factory),
) -> RedirectResponse:
    """Handle the redirect back from Xero after the user authorises."""
    logger.info("=== Xero OAuth 1.0a Callback ===")
    logger.info(f"OAuth verifier present: {bool(oauth_verifier)}")

    # Both are single use, whatever the outcome of this callback
    request_token = session_store.pop_request_token(request.session)
    return_to = session_store.pop_return_to(request.session)

    if not request_token:
        logger.error("No request token saved in session")
        return error_redirect("Authorisation session expired, please try again")
    if not oauth_verifier:
        logger.error("Callback is missing oauth_verifier")
        return error_redirect("Authorisation was not completed")

    oauth1_client = client_factory(config).oauth1_client
    access_token = await oauth1_client.swap_request_token_for_access_token(request_token, oauth_verifier)
    session_store.save_access_token(request.session, access_token)

    logger.info(f"Authorisation complete, returning to {return_to}")
    return RedirectResponse(url=return_to, status_code=302)


@router.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat()
    }
