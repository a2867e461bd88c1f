import os

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 3001))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", None)

ALLOWED_ORIGINS = [origin.strip() for origin in os.getenv("ALLOWED_ORIGINS", "*").split(",") if origin.strip()]
CLIENT_URL = os.getenv("CLIENT_URL", None)

# Intervals are configured in milliseconds and used in seconds
ROOM_CLEANUP_INTERVAL = int(os.getenv("ROOM_CLEANUP_INTERVAL", 300000)) / 1000
INACTIVE_ROOM_TIMEOUT = int(os.getenv("INACTIVE_ROOM_TIMEOUT", 600000)) / 1000

ROOM_ID_LENGTH = int(os.getenv("ROOM_ID_LENGTH", 6))
ROOM_ID_MAX_ATTEMPTS = 10
