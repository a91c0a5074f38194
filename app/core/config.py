import os
from typing import Optional

# Database connection URL (async)
# Example: "postgresql+asyncpg://user@localhost/places_db"
SQLALCHEMY_DATABASE_URL: str = os.environ["DATABASE_URL"]

# Allow requests from this origin
ALLOW_ORIGIN: Optional[str] = os.environ.get("ALLOW_ORIGIN")

# If true, enable docs and openapi.json endpoints
ENABLE_DOCS: bool = os.environ.get("ENABLE_DOCS") == "1"

# Where uploaded place images are kept, either "local" (UPLOAD_DIR) or "firebase" (STORAGE_BUCKET)
IMAGE_STORE_BACKEND: str = os.environ.get("IMAGE_STORE_BACKEND", "local")

# Local directory for uploaded images, served under /uploads/images
UPLOAD_DIR: str = os.environ.get("UPLOAD_DIR", "uploads/images")

# Firebase storage bucket for place images
STORAGE_BUCKET: str = os.environ.get("STORAGE_BUCKET", "places-app.appspot.com")

MAX_IMAGE_SIZE_BYTES: int = int(os.environ.get("MAX_IMAGE_SIZE_BYTES", 10 * 1024 * 1024))

# Google Maps geocoding
GOOGLE_API_KEY: str = os.environ.get("GOOGLE_API_KEY", "")
GEOCODING_API_URL: str = os.environ.get("GEOCODING_API_URL", "https://maps.googleapis.com/maps/api/geocode/json")
GEOCODING_TIMEOUT_SECONDS: float = float(os.environ.get("GEOCODING_TIMEOUT_SECONDS", 5))

# If true, asking for the places of a user that has none is a 404 instead of an empty list
EMPTY_OWNER_PLACES_IS_ERROR: bool = os.environ.get("EMPTY_OWNER_PLACES_IS_ERROR", "1") == "1"
