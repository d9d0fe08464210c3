"""
Lazily created Supabase and model API clients shared by all services.
"""
from openai import OpenAI
from supabase import create_client, Client

from markwise.config import config
from markwise.errors import ConfigurationError

_supabase: Client = None
_ai_client: OpenAI = None


def get_supabase() -> Client:
    """Get or create the Supabase service-role client."""
    global _supabase
    if _supabase is None:
        if not config.supabase_url or not config.supabase_service_key:
            raise ConfigurationError(
                "Supabase credentials not configured. Check SUPABASE_URL and SUPABASE_SERVICE_KEY in .env"
            )
        _supabase = create_client(config.supabase_url, config.supabase_service_key)
    return _supabase


def get_ai_client() -> OpenAI:
    """Get or create the OpenAI-compatible client used for chat, vision and embeddings."""
    global _ai_client
    if _ai_client is None:
        if not config.ai_api_key:
            raise ConfigurationError("GEMINI_API_KEY is not configured")
        _ai_client = OpenAI(api_key=config.ai_api_key, base_url=config.ai_base_url)
    return _ai_client


def reset_clients():
    """Drop cached clients so the next call picks up new credentials."""
    global _supabase, _ai_client
    _supabase = None
    _ai_client = None
