"""
Session bookkeeping for the OAuth 1.0a handshake.

The session cookie is signed but readable by the browser, so token secrets
and session handles are Fernet-encrypted before they are stored.
"""

from typing import Dict, MutableMapping, Optional
from ..utils.crypto import FernetEncryption
from ..utils.logger import get_logger

logger = get_logger(__name__)

REQUEST_TOKEN_KEY = "oauthRequestToken"
ACCESS_TOKEN_KEY = "accessToken"
RETURN_TO_KEY = "returnTo"

_ENCRYPTED_FIELDS = ("oauth_token_secret", "oauth_session_handle")

Session = MutableMapping


def _seal(token: Dict) -> Dict:
    crypto = FernetEncryption()
    sealed = dict(token)
    for field in _ENCRYPTED_FIELDS:
        if sealed.get(field):
            sealed[field] = crypto.encrypt(sealed[field])
    return sealed


def _unseal(sealed: Optional[Dict]) -> Optional[Dict]:
    if not sealed or not sealed.get("oauth_token"):
        return None

    crypto = FernetEncryption()
    token = dict(sealed)
    for field in _ENCRYPTED_FIELDS:
        if token.get(field):
            value = crypto.decrypt(token[field])
            if value is None:
                return None
            token[field] = value
    return token


def save_request_token(session: Session, request_token: Dict) -> None:
    session[REQUEST_TOKEN_KEY] = _seal(request_token)


def pop_request_token(session: Session) -> Optional[Dict]:
    """Take the request token out of the session; it is only good for one swap."""
    return _unseal(session.pop(REQUEST_TOKEN_KEY, None))


def save_access_token(session: Session, access_token: Dict) -> None:
    session[ACCESS_TOKEN_KEY] = _seal(access_token)


def get_access_token(session: Session) -> Optional[Dict]:
    token = _unseal(session.get(ACCESS_TOKEN_KEY))
    if token is None and ACCESS_TOKEN_KEY in session:
        logger.info("Dropping unreadable access token from session")
        del session[ACCESS_TOKEN_KEY]
    return token


def clear_access_token(session: Session) -> None:
    session.pop(ACCESS_TOKEN_KEY, None)


def is_local_path(path: Optional[str]) -> bool:
    return bool(path) and path.startswith("/") and not path.startswith("//") and "\\" not in path


def set_return_to(session: Session, return_to: Optional[str]) -> None:
    if is_local_path(return_to):
        session[RETURN_TO_KEY] = return_to
    else:
        if return_to:
            logger.warning(f"Ignoring non-local returnTo: {return_to}")
        session.pop(RETURN_TO_KEY, None)


def pop_return_to(session: Session, default: str = "/") -> str:
    return_to = session.pop(RETURN_TO_KEY, None)
    return return_to if is_local_path(return_to) else default
