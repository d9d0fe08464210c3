"""
Grading API routes for Markwise.
Runs the retrieval-augmented grading pipeline for one answer.
"""
from flask import Blueprint, request, jsonify, g

from markwise.routes.responses import error_response
from markwise.services.grading_service import evaluate_answer

grading_bp = Blueprint('grading', __name__)


@grading_bp.route('/api/evaluate-answer', methods=['POST'])
def evaluate_answer_endpoint():
    """
    Grade an answer against the ideal answer.

    Body: {answerId, questionText, idealAnswer, maxMarks, ocrText, imageUrl}
    """
    data = request.get_json(silent=True) or {}
    try:
        evaluation = evaluate_answer(
            answer_id=data.get('answerId'),
            question_text=data.get('questionText'),
            ideal_answer=data.get('idealAnswer'),
            max_marks=data.get('maxMarks'),
            ocr_text=data.get('ocrText'),
            image_url=data.get('imageUrl'),
            user_id=g.user_id,
        )
        return jsonify({"success": True, "evaluation": evaluation})
    except Exception as e:
        return error_response(e, 'evaluate-answer')
