"""
OCR API routes for Markwise.
"""
from flask import Blueprint, request, jsonify

from markwise.routes.responses import error_response
from markwise.services.ocr_service import process_answer_ocr

ocr_bp = Blueprint('ocr', __name__)


@ocr_bp.route('/api/process-ocr', methods=['POST'])
def process_ocr():
    """Extract handwriting from an answer image. Body: {answerId, imageUrl}"""
    data = request.get_json(silent=True) or {}
    try:
        ocr = process_answer_ocr(data.get('answerId'), data.get('imageUrl'))
        return jsonify({"success": True, "ocr": ocr})
    except Exception as e:
        return error_response(e, 'process-ocr')
