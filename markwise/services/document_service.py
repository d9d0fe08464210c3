"""
Reference document ingestion for retrieval-augmented grading.

Documents are split into sentence-aligned chunks, each chunk is embedded
on its own and stored with its position in the document. The document is
flagged processed only once every chunk is written; a failure part-way
leaves the earlier chunks in place and the document unprocessed.
"""
import logging

from markwise.config import CHUNK_SIZE
from markwise.errors import ValidationError
from markwise.services.chunking import split_text_into_chunks
from markwise.services.clients import get_ai_client, get_supabase
from markwise.services.document_text import fetch_document_text
from markwise.services.embeddings import embed_text

logger = logging.getLogger(__name__)


def ingest_document(user_id, title=None, description=None, text_content=None, file_url=None,
                    chunk_size=CHUNK_SIZE):
    """
    Create a document, chunk and embed its text.

    Returns {"document_id": ..., "chunks_processed": n}.
    """
    if not text_content and not file_url:
        raise ValidationError("Missing textContent or fileUrl")

    db = get_supabase()
    client = get_ai_client()

    # Fetch and extract before any row exists
    raw_text = text_content if text_content else fetch_document_text(file_url)

    result = db.table('documents').insert({
        "title": title or 'Untitled Document',
        "description": description,
        "file_path": file_url or 'text-upload',
        "uploaded_by": user_id,
        "is_processed": False,
    }).execute()
    document_id = result.data[0]['id']

    chunks = split_text_into_chunks(raw_text, chunk_size)
    logger.info("Split document %s into %d chunks", document_id, len(chunks))

    for index, chunk in enumerate(chunks):
        try:
            embedding = embed_text(chunk, client=client)
            db.table('document_chunks').insert({
                "document_id": document_id,
                "chunk_index": index,
                "chunk_content": chunk,
                "embedding": embedding,
            }).execute()
        except Exception:
            logger.error(
                "Ingestion of document %s stopped at chunk %d of %d; document left unprocessed",
                document_id, index, len(chunks),
            )
            raise

    db.table('documents').update({"is_processed": True}).eq('id', document_id).execute()

    return {"document_id": document_id, "chunks_processed": len(chunks)}


def list_documents(user_id):
    """Documents uploaded by a teacher, newest first."""
    db = get_supabase()
    result = db.table('documents').select(
        'id, title, description, file_path, is_processed, created_at'
    ).eq('uploaded_by', user_id).order('created_at', desc=True).execute()
    return result.data or []
