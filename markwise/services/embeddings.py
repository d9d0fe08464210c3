"""
Text embeddings via the model API.
"""
from markwise.config import config
from markwise.services.clients import get_ai_client
from markwise.services.observability import record_soft_failure


def embed_text(text: str, client=None) -> list:
    """Embed a single piece of text and return the vector."""
    client = client or get_ai_client()
    response = client.embeddings.create(
        model=config.embedding_model,
        input=text,
    )
    return response.data[0].embedding


def try_embed(text: str, stage: str, client=None):
    """Best-effort embed. Returns None (and records a soft failure) on error."""
    if not text or not text.strip():
        return None
    try:
        return embed_text(text, client=client)
    except Exception as e:
        record_soft_failure(stage, e, text_length=len(text))
        return None
