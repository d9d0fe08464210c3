"""
Configuration management for Markwise backend.
"""
import os
from pathlib import Path
from dotenv import load_dotenv

# Base path
BASE_DIR = Path(__file__).parent.parent

# Load environment variables
load_dotenv(BASE_DIR / ".env")

# Supabase (database, storage, auth)
SUPABASE_URL = os.getenv("SUPABASE_URL", "")
SUPABASE_SERVICE_KEY = os.getenv("SUPABASE_SERVICE_KEY", "")
SUPABASE_JWT_SECRET = os.getenv("SUPABASE_JWT_SECRET", "")

# Model API (OpenAI-compatible; Gemini by default)
AI_API_KEY = os.getenv("GEMINI_API_KEY") or os.getenv("AI_API_KEY", "")
AI_BASE_URL = os.getenv("AI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta/openai/")
GRADING_MODEL = os.getenv("GRADING_MODEL", "gemini-2.0-flash")
OCR_MODEL = os.getenv("OCR_MODEL", "gemini-2.0-flash")
EMBEDDING_MODEL = os.getenv("EMBEDDING_MODEL", "text-embedding-004")

# Server configuration
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "3000"))
DEBUG = os.getenv("FLASK_DEBUG", "").lower() in ("1", "true", "yes")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Storage
ANSWER_IMAGES_BUCKET = "answer-images"
SIGNED_URL_EXPIRY = 300  # seconds
MAX_UPLOAD_BYTES = 10 * 1024 * 1024
ALLOWED_UPLOAD_TYPES = {
    'image/jpeg': 'jpg',
    'image/png': 'png',
    'application/pdf': 'pdf',
}

# Retrieval / grading
CHUNK_SIZE = 800
FEEDBACK_MATCH_THRESHOLD = 0.85
FEEDBACK_MATCH_COUNT = 3
CONTEXT_MATCH_THRESHOLD = 0.70
CONTEXT_MATCH_COUNT = 5
DEFAULT_MAX_MARKS = 10

# Image preprocessing
PREPROCESS_OFFSET = 50
PREPROCESS_JPEG_QUALITY = 90

# OCR background workers
OCR_WORKERS = int(os.getenv("OCR_WORKERS", "4"))

# Remote document fetch
DOCUMENT_FETCH_TIMEOUT = 30


class Config:
    """Application configuration class."""

    def __init__(self):
        self.supabase_url = SUPABASE_URL
        self.supabase_service_key = SUPABASE_SERVICE_KEY
        self.jwt_secret = SUPABASE_JWT_SECRET
        self.ai_api_key = AI_API_KEY
        self.ai_base_url = AI_BASE_URL
        self.grading_model = GRADING_MODEL
        self.ocr_model = OCR_MODEL
        self.embedding_model = EMBEDDING_MODEL

    def to_dict(self):
        return {
            "supabase_url": self.supabase_url,
            "ai_base_url": self.ai_base_url,
            "grading_model": self.grading_model,
            "ocr_model": self.ocr_model,
            "embedding_model": self.embedding_model,
            "supabase_configured": bool(self.supabase_url and self.supabase_service_key),
            "ai_configured": bool(self.ai_api_key),
        }


# Global config instance
config = Config()
