import os

from dotenv import load_dotenv

# Pick up a .env file from the working directory; real env vars win
load_dotenv(os.path.join(os.getcwd(), ".env"))

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 4010))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", None)

RELOAD = os.getenv("RELOAD", "false").lower() in ("1", "true", "yes")

# Comma separated list of origins allowed to reach the server (HTTP and WebSocket)
CLIENT_ORIGIN = os.getenv(
    "CLIENT_ORIGIN",
    "http://localhost:5173,http://127.0.0.1:5173,https://voice-server-et20.onrender.com",
)
ALLOWED_ORIGINS = [origin.strip() for origin in CLIENT_ORIGIN.split(",") if origin.strip()]

SERVICE_NAME = "voice-server"
DEFAULT_DISPLAY_NAME = "Guest"
