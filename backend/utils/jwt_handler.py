import logging
from fastapi import Depends, HTTPException
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from pymongo.database import Database

from backend.config import SECRET_KEY, ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES
from backend.database.mongodb import get_db

# Logger setup
logger = logging.getLogger("jwt_handler")

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/login")


# ---------- Token helpers ----------
def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


# --- verification of tokens against the server-side session ----#
def verify_token(token: str, db: Database) -> Dict[str, str]:
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.error(f"JWT error: {e}")
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    username = payload.get("username")
    user_id = payload.get("sub")
    sid = payload.get("sid")

    if not (username and user_id and sid):
        raise HTTPException(status_code=401, detail="Invalid token payload")

    sessions = db["sessions"]
    sess = sessions.find_one({"sid": sid})
    if not sess or sess.get("revoked"):
        raise HTTPException(status_code=401, detail="Session expired or revoked")

    sessions.update_one({"sid": sid}, {"$set": {"last_seen": datetime.now(timezone.utc)}})

    return {
        "_id": str(user_id),
        "user_id": str(user_id),
        "username": str(username),
        "sid": str(sid),
    }


# Dependency for protected routes---#
def require_user(token: str = Depends(oauth2_scheme), db: Database = Depends(get_db)) -> Dict[str, str]:
    return verify_token(token, db)
