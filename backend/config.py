import os
from dotenv import load_dotenv

from backend.errors import CredentialMissing

load_dotenv()

API_KEY = os.getenv("MISTRAL_API_KEY")
MODEL = os.getenv("MISTRAL_MODEL", "mistral-large-latest")
TEMPERATURE = float(os.getenv("MISTRAL_TEMPERATURE", "0.2"))
MAX_TOKENS = int(os.getenv("MISTRAL_MAX_TOKENS", "4096"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def has_api_key() -> bool:
    return bool(API_KEY)


def require_api_key() -> str:
    """Return the configured key, or raise before any network call is attempted."""
    if not API_KEY:
        raise CredentialMissing()
    return API_KEY
