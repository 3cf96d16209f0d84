# src/UAA/utils.py
import os
import hmac
import hashlib
import secrets
import time
import uuid
from datetime import timedelta
from typing import Dict, Any, Optional

import structlog
from passlib.context import CryptContext
from jose import jwt, JWTError
from cryptography.fernet import Fernet, InvalidToken

logger = structlog.get_logger(__name__)

# Config (env)
SECRET_KEY = os.getenv("SECRET_KEY", "change_me_now")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_DAYS = int(os.getenv("ACCESS_TOKEN_EXPIRE_DAYS", "7"))
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))
OAUTH_STATE_TTL_SECONDS = int(os.getenv("OAUTH_STATE_TTL_SECONDS", "600"))
OAUTH_TOKEN_KEY = os.getenv("OAUTH_TOKEN_KEY")  # must be a base64 key for Fernet, set in prod

if not OAUTH_TOKEN_KEY:
    # dev fallback (not for production): stored tokens become unreadable after a restart
    OAUTH_TOKEN_KEY = Fernet.generate_key().decode()

# clients
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=BCRYPT_ROUNDS)
fernet = Fernet(OAUTH_TOKEN_KEY.encode())

# --- Password utilities ---
def hash_password(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(plain: str, hashed: str) -> bool:
    try:
        return pwd_context.verify(plain, hashed)
    except Exception as e:
        logger.exception("password_verify_failed", error=str(e))
        return False

# verified against when the email is unknown, so both sign-in failure paths hash once
DUMMY_PASSWORD_HASH = hash_password(secrets.token_urlsafe(16))

# --- JWT helpers ---
def _now_ts() -> int:
    return int(time.time())

def create_access_token(user_id: str, email: str, expires_delta: Optional[timedelta] = None) -> Dict[str, Any]:
    jti = str(uuid.uuid4())
    issued = _now_ts()
    lifetime = expires_delta or timedelta(days=ACCESS_TOKEN_EXPIRE_DAYS)
    payload = {
        "sub": user_id,
        "email": email,
        "exp": issued + int(lifetime.total_seconds()),
        "jti": jti,
        "type": "access",
        "iat": issued,
    }
    token = jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)
    logger.debug("create_access_token", sub=user_id, jti=jti, exp=payload["exp"])
    return {"token": token, "jti": jti, "exp": payload["exp"], "expires_in": int(lifetime.total_seconds())}

def decode_token(token: str) -> Dict[str, Any]:
    """Verify signature and expiry; raises JWTError on any failure."""
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.warning("token_decode_failed", error=str(e))
        raise

# --- OAuth token encryption ---
def encrypt_token(plaintext: Optional[str]) -> Optional[str]:
    if plaintext is None:
        return None
    return fernet.encrypt(plaintext.encode()).decode()

def decrypt_token(ciphertext: Optional[str]) -> Optional[str]:
    if not ciphertext:
        return None
    try:
        return fernet.decrypt(ciphertext.encode()).decode()
    except InvalidToken:
        logger.warning("stored_token_undecryptable")
        return None

# --- OAuth state ---
# Shape: "<random_hex>.<issued_ts>.<signature>_<user_id>". None of the parts
# can contain "_", so the value always splits into exactly nonce and user id.

def _state_signature(random_hex: str, issued_ts: int, user_id: str) -> str:
    msg = f"{random_hex}.{issued_ts}_{user_id}".encode()
    return hmac.new(SECRET_KEY.encode(), msg, hashlib.sha256).hexdigest()

def create_oauth_state(user_id: str) -> str:
    random_hex = secrets.token_hex(16)
    issued_ts = _now_ts()
    signature = _state_signature(random_hex, issued_ts, str(user_id))
    return f"{random_hex}.{issued_ts}.{signature}_{user_id}"

def verify_oauth_state(state: str, now_ts: Optional[int] = None) -> Optional[str]:
    """Return the user id embedded in a state minted by create_oauth_state.

    Returns None when the value is malformed, tampered with or expired.
    """
    parts = state.split("_")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        return None
    nonce, user_id = parts
    nonce_parts = nonce.split(".")
    if len(nonce_parts) != 3:
        return None
    random_hex, issued_raw, signature = nonce_parts
    try:
        issued_ts = int(issued_raw)
    except ValueError:
        return None
    expected = _state_signature(random_hex, issued_ts, user_id)
    if not hmac.compare_digest(expected, signature):
        logger.warning("oauth_state_signature_mismatch")
        return None
    now_ts = _now_ts() if now_ts is None else now_ts
    if now_ts - issued_ts > OAUTH_STATE_TTL_SECONDS or issued_ts > now_ts + 60:
        logger.info("oauth_state_expired", issued_ts=issued_ts)
        return None
    return user_id
