"""
Question bank routes for Markwise.
Questions carry the ideal answer and maximum marks used when grading.
"""
import math

from flask import Blueprint, request, jsonify, g

from markwise.config import DEFAULT_MAX_MARKS
from markwise.errors import ValidationError
from markwise.routes.responses import error_response
from markwise.services.clients import get_supabase

question_bp = Blueprint('question', __name__)

DIFFICULTIES = ('easy', 'medium', 'hard')


def _question_payload(data):
    """Validate and normalize a question body."""
    question_text = (data.get('question_text') or '').strip()
    ideal_answer = (data.get('ideal_answer') or '').strip()
    if not question_text or not ideal_answer:
        raise ValidationError("question_text and ideal_answer are required")

    max_marks = data.get('max_marks', DEFAULT_MAX_MARKS)
    try:
        max_marks = float(max_marks)
    except (TypeError, ValueError):
        raise ValidationError("max_marks must be a number")
    if max_marks <= 0 or not math.isfinite(max_marks):
        raise ValidationError("max_marks must be a positive number")

    difficulty = data.get('difficulty') or 'medium'
    if difficulty not in DIFFICULTIES:
        raise ValidationError("difficulty must be one of: " + ", ".join(DIFFICULTIES))

    return {
        "question_text": question_text,
        "ideal_answer": ideal_answer,
        "max_marks": max_marks,
        "subject": (data.get('subject') or '').strip() or None,
        "difficulty": difficulty,
    }


@question_bp.route('/api/questions', methods=['GET'])
def list_questions():
    """The caller's questions, newest first."""
    try:
        db = get_supabase()
        result = db.table('questions').select('*').eq(
            'created_by', g.user_id
        ).order('created_at', desc=True).execute()
        return jsonify({"questions": result.data or []})
    except Exception as e:
        return error_response(e, 'list-questions')


@question_bp.route('/api/questions', methods=['POST'])
def create_question():
    try:
        payload = _question_payload(request.get_json(silent=True) or {})
        payload["created_by"] = g.user_id
        db = get_supabase()
        result = db.table('questions').insert(payload).execute()
        return jsonify({"success": True, "question": result.data[0] if result.data else payload}), 201
    except Exception as e:
        return error_response(e, 'create-question')


@question_bp.route('/api/questions/<question_id>', methods=['PUT'])
def update_question(question_id):
    try:
        payload = _question_payload(request.get_json(silent=True) or {})
        db = get_supabase()
        result = db.table('questions').update(payload).eq('id', question_id).eq(
            'created_by', g.user_id
        ).execute()
        if not result.data:
            return jsonify({"error": "Question not found"}), 404
        return jsonify({"success": True, "question": result.data[0]})
    except Exception as e:
        return error_response(e, 'update-question')


@question_bp.route('/api/questions/<question_id>', methods=['DELETE'])
def delete_question(question_id):
    try:
        db = get_supabase()
        result = db.table('questions').delete().eq('id', question_id).eq(
            'created_by', g.user_id
        ).execute()
        if not result.data:
            return jsonify({"error": "Question not found"}), 404
        return jsonify({"success": True})
    except Exception as e:
        return error_response(e, 'delete-question')
