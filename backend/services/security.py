import logging
from typing import Any, Dict

import bcrypt

from backend.config import MASK_CHAR, MASK_VISIBLE

# Logger setup
logger = logging.getLogger("security_service")


#--- api key redaction, applied to every provider that leaves the server --#
def mask_api_key(secret: str, visible: int = MASK_VISIBLE, mask_char: str = MASK_CHAR) -> str:
    """
    Mask an API key, keeping `visible` characters at each end.

    The result always has the same length as the input. Keys too short to
    keep both ends without overlap are masked entirely.
    """
    secret = secret or ""
    if len(secret) < 2 * visible:
        return mask_char * len(secret)
    hidden = len(secret) - 2 * visible
    return f"{secret[:visible]}{mask_char * hidden}{secret[-visible:]}"


def public_provider(provider: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of a provider record that is safe to hand to a client."""
    out = dict(provider)
    out["api_key"] = mask_api_key(out.get("api_key") or "")
    return out


#---- password hashing --#
def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=12)).decode("utf-8")


def check_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is malformed")
        return False
