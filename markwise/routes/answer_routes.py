"""
Student answer routes for Markwise.
Upload, review, OCR correction and on-demand evaluation.
"""
import logging

from flask import Blueprint, request, jsonify, g

from markwise.routes.responses import error_response, rate_limit_aware_response
from markwise.services import answer_service

logger = logging.getLogger(__name__)

answer_bp = Blueprint('answer', __name__)


def _flag(value, default=True):
    if value is None:
        return default
    return str(value).lower() in ('1', 'true', 'yes', 'on')


@answer_bp.route('/api/answers', methods=['POST'])
def upload_answers():
    """
    Upload answer images (multipart form).

    Fields: question_id (required), student_name, enhance, files (1..n).
    OCR runs in the background; poll the answer's ocr_status.
    """
    question_id = request.form.get('question_id', '').strip()
    files = request.files.getlist('files')

    # Reject before touching storage
    if not question_id:
        return jsonify({"error": "Select a question before uploading answers"}), 400
    if not files:
        return jsonify({"error": "No files uploaded"}), 400

    try:
        answer_service.require_owned_question(question_id, g.user_id)
    except Exception as e:
        return error_response(e, 'upload-answers')

    student_name = request.form.get('student_name')
    enhance = _flag(request.form.get('enhance'))

    answers = []
    skipped = []
    errors = []
    for file in files:
        data = file.read()
        content_type = file.mimetype or ''
        reason = answer_service.check_upload(file.filename, content_type, len(data))
        if reason:
            skipped.append(reason)
            continue
        try:
            answers.append(answer_service.create_answer(
                g.user_id, question_id, file.filename, data, content_type,
                student_name=student_name, enhance=enhance,
            ))
        except Exception as e:
            logger.error("Upload failed for %s: %s", file.filename, e)
            errors.append(f"{file.filename}: {e}")

    status = 201 if answers else 400
    return jsonify({
        "uploaded": len(answers),
        "answers": answers,
        "skipped": skipped,
        "errors": errors,
        "message": f"{len(answers)} answer{'s' if len(answers) != 1 else ''} uploaded. OCR processing started in background.",
    }), status


@answer_bp.route('/api/answers', methods=['GET'])
def list_answers():
    """Answers newest first, each with its question and current evaluation."""
    try:
        return jsonify({"answers": answer_service.list_answers(g.user_id)})
    except Exception as e:
        return error_response(e, 'list-answers')


@answer_bp.route('/api/answers/<answer_id>', methods=['GET'])
def get_answer(answer_id):
    try:
        return jsonify({"answer": answer_service.get_answer(answer_id, g.user_id)})
    except Exception as e:
        return error_response(e, 'get-answer')


@answer_bp.route('/api/answers/<answer_id>/evaluate', methods=['POST'])
def evaluate(answer_id):
    """Run AI evaluation for a stored answer."""
    try:
        evaluation = answer_service.grade_answer(answer_id, g.user_id)
        return jsonify({"success": True, "evaluation": evaluation})
    except Exception as e:
        return rate_limit_aware_response(e, 'evaluate')


@answer_bp.route('/api/answers/<answer_id>/ocr', methods=['PUT'])
def correct_ocr(answer_id):
    """Replace the OCR transcript with the teacher's correction."""
    data = request.get_json(silent=True) or {}
    try:
        answer = answer_service.correct_ocr(answer_id, data.get('ocr_text'), g.user_id)
        return jsonify({"success": True, "answer": answer})
    except Exception as e:
        return error_response(e, 'correct-ocr')


@answer_bp.route('/api/answers/<answer_id>/ocr/retry', methods=['POST'])
def retry_ocr(answer_id):
    try:
        return jsonify({"success": True, **answer_service.retry_ocr(answer_id, g.user_id)}), 202
    except Exception as e:
        return error_response(e, 'retry-ocr')
