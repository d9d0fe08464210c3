"""
Reference document API routes for Markwise.
Handles ingestion of teacher material used to ground grading.
"""
from flask import Blueprint, request, jsonify, g

from markwise.routes.responses import error_response
from markwise.services.document_service import ingest_document, list_documents

document_bp = Blueprint('document', __name__)


@document_bp.route('/api/ingest-document', methods=['POST'])
def ingest_document_endpoint():
    """
    Chunk, embed and store reference text for the calling teacher.

    Body: {title, description?, textContent?, fileUrl?}
    """
    data = request.get_json(silent=True) or {}
    try:
        result = ingest_document(
            user_id=g.user_id,
            title=data.get('title'),
            description=data.get('description'),
            text_content=data.get('textContent'),
            file_url=data.get('fileUrl'),
        )
        return jsonify({
            "success": True,
            "chunks_processed": result["chunks_processed"],
            "document_id": result["document_id"],
        })
    except Exception as e:
        return error_response(e, 'ingest-document')


@document_bp.route('/api/documents', methods=['GET'])
def list_documents_endpoint():
    """List the calling teacher's reference documents."""
    try:
        return jsonify({"documents": list_documents(g.user_id)})
    except Exception as e:
        return error_response(e, 'list-documents')
