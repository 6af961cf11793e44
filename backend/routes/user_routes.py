from fastapi import APIRouter, Depends, HTTPException, Request
from pymongo.database import Database
from datetime import datetime, timezone
import uuid
import logging

from backend.models.user_model import UserData, LoginIn
from backend.database.mongodb import get_db
from backend.services.security import hash_password, check_password
from backend.utils.jwt_handler import create_access_token, require_user

router = APIRouter(prefix="/api", tags=["Users"])

# Logger setup
logger = logging.getLogger("user_routes")


# ---------- Helpers ----------
#----authentication: look the user up by username, then check the password --#
def authenticate(db: Database, username: str, password: str) -> dict:
    user = db["users"].find_one({"username": username})
    if not user or not check_password(password, user["password"]):
        raise HTTPException(status_code=401, detail="Invalid username or password")
    return user


#-- every login gets its own server-side session with a unique sid --#
def make_session(db: Database, user: dict, user_agent: str | None, ip: str | None):
    sid = uuid.uuid4().hex
    now = datetime.now(timezone.utc)
    doc = {
        "sid": sid,
        "user_id": str(user["_id"]),
        "username": user["username"],
        "user_agent": user_agent or "",
        "ip": ip or "",
        "created_at": now,
        "last_seen": now,
        "revoked": False,
    }
    db["sessions"].insert_one(doc)
    return sid, doc


# ================== AUTH ==================
@router.post("/register", status_code=201)
def register(user: UserData, db: Database = Depends(get_db)):
    users = db["users"]
    if users.find_one({"username": user.username}):
        raise HTTPException(status_code=400, detail="Username already exists")

    data = user.model_dump()
    data["password"] = hash_password(user.password)

    res = users.insert_one(data)
    logger.info(f"User {user.username} registered")
    return {"id": str(res.inserted_id), "username": user.username}


@router.post("/login")
def login(body: LoginIn, request: Request, db: Database = Depends(get_db)):
    user = authenticate(db, body.username, body.password)
    ua = request.headers.get("user-agent")
    ip = request.client.host if request.client else None

    sid, sess = make_session(db, user, ua, ip)
    token = create_access_token({
        "sub": str(user["_id"]),
        "username": user["username"],
        "sid": sid,
    })

    logger.info(f"User {user['username']} logged in, SID: {sid}")
    return {
        "access_token": token,
        "token_type": "bearer",
        "session": {"sid": sid, "created_at": sess["created_at"]},
    }


#----- revoke the session behind the current token --#
@router.post("/logout")
def logout(user=Depends(require_user), db: Database = Depends(get_db)):
    res = db["sessions"].update_one(
        {"sid": user["sid"], "user_id": user["user_id"]},
        {"$set": {"revoked": True}}
    )
    logger.info(f"User {user['user_id']} logged out, SID: {user['sid']}")
    return {"revoked": int(res.modified_count == 1)}


@router.get("/user")
def me(user=Depends(require_user)):
    return {"id": user["user_id"], "username": user["username"], "sid": user["sid"]}
