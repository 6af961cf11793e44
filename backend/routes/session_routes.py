from fastapi import APIRouter, Depends, HTTPException, Query
from pymongo.database import Database
from datetime import datetime, timezone
import logging

from backend.database.mongodb import get_db
from backend.utils.jwt_handler import require_user

# Logger setup
logger = logging.getLogger("session_routes")

router = APIRouter(prefix="/api/sessions", tags=["Sessions"])


#----the user's active sessions, latest on top ---#
@router.get("/my")
def list_my_sessions(
    user=Depends(require_user),
    db: Database = Depends(get_db),
    limit: int = Query(10, ge=1),
    skip: int = Query(0, ge=0),
):
    """List all active sessions for the current user."""
    cur = db["sessions"].find(
        {"user_id": user["user_id"], "revoked": False},
        {"_id": 0, "sid": 1, "user_agent": 1, "ip": 1, "created_at": 1, "last_seen": 1}
    ).sort("created_at", -1).skip(skip).limit(limit)
    return {"ok": True, "sessions": list(cur)}


#--- keep the current session and revoke every other one ---#
@router.post("/revoke/others")
def revoke_other_sessions(user=Depends(require_user), db: Database = Depends(get_db)):
    """Revoke all other sessions except the current one."""
    res = db["sessions"].update_many(
        {"user_id": user["user_id"], "sid": {"$ne": user["sid"]}},
        {"$set": {"revoked": True, "last_seen": datetime.now(timezone.utc)}}
    )
    logger.info(f"Revoked other sessions for user {user['user_id']}")
    return {"ok": True, "revoked": res.modified_count}


#---- revoke one session of the same user ---#
@router.post("/revoke/{sid}")
def revoke_by_sid(sid: str, user=Depends(require_user), db: Database = Depends(get_db)):
    """Revoke a specific session by ID."""
    res = db["sessions"].update_one(
        {"sid": sid, "user_id": user["user_id"]},
        {"$set": {"revoked": True, "last_seen": datetime.now(timezone.utc)}}
    )
    if res.matched_count == 0:
        raise HTTPException(404, "Session not found")
    logger.info(f"Session revoked for user {user['user_id']} (SID: {sid})")
    return {"ok": True, "revoked": 1, "sid": sid}
