
import os

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./contractdesk.db")
SECRET_KEY = os.getenv("SECRET_KEY", "devsecret")
ADMIN_ACCESS_TOKEN = os.getenv("ADMIN_ACCESS_TOKEN")
WEB_BASE_URL = os.getenv("WEB_BASE_URL", "http://localhost:3000")
# seconds; unset means signing tokens never expire
SIGNING_TOKEN_TTL = int(os.getenv("SIGNING_TOKEN_TTL")) if os.getenv("SIGNING_TOKEN_TTL") else None
PAGINATION_DEBOUNCE_SECONDS = float(os.getenv("PAGINATION_DEBOUNCE_SECONDS", "0.3"))
GRID_SIZE = float(os.getenv("GRID_SIZE", "10"))
