from cryptography.fernet import Fernet, InvalidToken
from typing import Optional
import base64
from .logger import get_logger
from ..config import get_settings

logger = get_logger(__name__)

class FernetEncryption:
    """Encrypts token secrets before they are written to the session cookie."""
    
    _instance = None
    
    def __new__(cls, key: Optional[str] = None):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialize(key)
        return cls._instance

    def _initialize(self, key: Optional[str] = None):
        """Initialize with encryption key."""
        key_str = key or get_settings().ENCRYPTION_KEY
        
        if not key_str:
            # Sessions issued with this key do not survive a restart
            logger.warning("No ENCRYPTION_KEY configured, generating a per-process key")
            key_str = Fernet.generate_key().decode()

        try:
            key_bytes = base64.urlsafe_b64decode(key_str)
        except (ValueError, TypeError) as e:
            logger.error(f"Invalid encryption key format: {str(e)}")
            raise ValueError("Encryption key must be 32 url-safe base64-encoded bytes")

        if len(key_bytes) != 32:
            logger.error(f"Invalid key length: {len(key_bytes)} bytes. Expected 32 bytes.")
            raise ValueError("Encryption key must be 32 url-safe base64-encoded bytes")

        self.cipher_suite = Fernet(key_str.encode() if isinstance(key_str, str) else key_str)
        logger.info("Fernet encryption initialized successfully")

    @classmethod
    def reset(cls) -> None:
        """Drop the shared instance so the next call picks up a new key."""
        cls._instance = None
    
    def encrypt(self, data: str) -> str:
        """Encrypt string data."""
        if not isinstance(data, str):
            raise ValueError(f"Data must be string, got {type(data)}")
        
        return self.cipher_suite.encrypt(data.encode()).decode()
    
    def decrypt(self, encrypted_data: str) -> Optional[str]:
        """Decrypt encrypted string, returning None when it cannot be read."""
        if not isinstance(encrypted_data, str):
            raise ValueError(f"Encrypted data must be string, got {type(encrypted_data)}")
        
        try:
            return self.cipher_suite.decrypt(encrypted_data.encode()).decode()
        except InvalidToken:
            logger.warning("Discarding value encrypted with an unknown key")
            return None
