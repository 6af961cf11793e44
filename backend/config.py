# backend/config.py
from dotenv import load_dotenv
import os

# ---------- Load environment variables ----------
load_dotenv()  # loads .env from the working directory

# ---------- Database ----------
MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017")
MONGO_DB = os.getenv("MONGO_DB", "chat_db")

# ---------- Auth ----------
SECRET_KEY = os.getenv("SECRET_KEY", "change-me-in-env")
ALGORITHM = os.getenv("JWT_ALG", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

# ---------- Completion client ----------
COMPLETION_TIMEOUT = float(os.getenv("COMPLETION_TIMEOUT", "60"))

# ---------- HTTP ----------
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

# ---------- Logging ----------
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# ---------- API-key redaction ----------
MASK_VISIBLE = 4
MASK_CHAR = "*"

# ---------- Broadcast hub ----------
OUTBOX_SIZE = int(os.getenv("OUTBOX_SIZE", "256"))  # queued events per socket before drops
