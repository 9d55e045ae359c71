"""Anti-bot fingerprint tokens and at-rest protection for the stored password."""

import base64
import binascii
import hashlib
import logging
import secrets
import string

from Crypto.Cipher import AES
from Crypto.Random import get_random_bytes

from cf.models import Session

logger = logging.getLogger(__name__)

FTAA_ALPHABET = string.ascii_lowercase + string.digits
FTAA_LENGTH = 18
BFAA_LENGTH = 32

_KEY_SALT = b"cf-session"
_IV_SIZE = 16


def generate_ftaa() -> str:
    return "".join(secrets.choice(FTAA_ALPHABET) for _ in range(FTAA_LENGTH))


def generate_bfaa() -> str:
    return secrets.token_hex(BFAA_LENGTH // 2)


def ensure_tokens(session: Session) -> bool:
    """Fill in missing fingerprint tokens. Returns True if the session changed.

    Existing tokens are never replaced: the site expects the same pair for the
    whole life of a session.
    """
    changed = False
    if not session.ftaa:
        session.ftaa = generate_ftaa()
        changed = True
    if not session.bfaa:
        session.bfaa = generate_bfaa()
        changed = True
    return changed


def _derive_key(identity: str) -> bytes:
    return hashlib.sha256(identity.encode("utf-8") + _KEY_SALT).digest()


def encrypt_password(identity: str, password: str) -> str:
    """Encrypt password with a key bound to the handle/email it belongs to."""
    if not password:
        return ""
    iv = get_random_bytes(_IV_SIZE)
    cipher = AES.new(_derive_key(identity), AES.MODE_CFB, iv=iv)
    ciphertext = cipher.encrypt(password.encode("utf-8"))
    return base64.b64encode(iv + ciphertext).decode("ascii")


def decrypt_password(identity: str, token: str) -> str:
    """Reverse encrypt_password. Returns an empty string if token can't be decoded."""
    if not token:
        return ""
    try:
        raw = base64.b64decode(token, validate=True)
    except (binascii.Error, ValueError):
        logger.warning("Stored password is not valid base64, ignoring it")
        return ""

    if len(raw) <= _IV_SIZE:
        logger.warning("Stored password is truncated, ignoring it")
        return ""

    cipher = AES.new(_derive_key(identity), AES.MODE_CFB, iv=raw[:_IV_SIZE])
    try:
        return cipher.decrypt(raw[_IV_SIZE:]).decode("utf-8")
    except UnicodeDecodeError:
        logger.warning("Stored password does not match handle %r, ignoring it", identity)
        return ""
