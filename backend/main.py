import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pymongo import ASCENDING

from backend.config import CORS_ORIGINS, LOG_LEVEL
from backend.database.mongodb import get_db
from backend.database.store import DomainStore
from backend.services.broadcast_hub import get_hub

# Logging setup
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger("main")


# ---------- Startup: indexes ----------
@asynccontextmanager
async def lifespan(app: FastAPI):
    db = app.dependency_overrides.get(get_db, get_db)()
    db["users"].create_index("username", unique=True)
    db["sessions"].create_index([("sid", ASCENDING)], unique=True)
    db["sessions"].create_index([("user_id", ASCENDING), ("revoked", ASCENDING)])
    DomainStore(db).ensure_indexes()
    logger.info("Indexes ensured")
    yield


# ---------- Initialize FastAPI ----------
app = FastAPI(title="Multi-provider Chat API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------- Routers ----------
from backend.routes.user_routes import router as user_router
from backend.routes.session_routes import router as session_router
from backend.routes.provider_routes import router as provider_router
from backend.routes.model_routes import router as model_router
from backend.routes.prompt_routes import router as prompt_router
from backend.routes.chat_routes import router as chat_router
from backend.routes.ws_routes import router as ws_router

# ---------- Register routers ----------
app.include_router(user_router)                     # /api/register, /api/login ...
app.include_router(session_router)                  # /api/sessions...
app.include_router(provider_router)                 # /api/providers...
app.include_router(model_router)                    # /api/models...
app.include_router(prompt_router)                   # /api/prompts...
app.include_router(chat_router)                     # /api/chats, /api/messages, /api/logs
app.include_router(ws_router)                       # /ws


# ---------- Root health check ----------
@app.get("/")
def root():
    logger.info("Health check successful")
    return {"message": "Chat API is running"}


# ---------- Enhanced Health Check ----------
@app.get("/health")
def health_check():
    try:
        db = app.dependency_overrides.get(get_db, get_db)()
        db.command("ping")
        db_status = "connected"
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        raise HTTPException(status_code=503, detail="Database unavailable")
    return {"status": "OK", "database": db_status, "live_connections": len(app.dependency_overrides.get(get_hub, get_hub)())}
