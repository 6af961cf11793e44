# backend/database/mongodb.py
from pymongo import MongoClient
from pymongo.database import Database

from backend.config import MONGO_URI, MONGO_DB

# Single shared client (connects lazily on first operation)
client = MongoClient(MONGO_URI)

# Typed Database object
db: Database = client[MONGO_DB]


def get_db() -> Database:
    """Return the shared database object."""
    return db
