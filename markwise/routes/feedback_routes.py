"""
Teacher feedback routes for Markwise.
Corrections stored here are retrieved later to calibrate grading of
similar answers.
"""
import math

from flask import Blueprint, request, jsonify, g

from markwise.errors import NotFoundError, ValidationError
from markwise.routes.responses import error_response
from markwise.services.clients import get_supabase

feedback_bp = Blueprint('feedback', __name__)

TEXT_FIELDS = ('teacher_feedback', 'what_ai_got_wrong', 'what_ai_missed')


def _feedback_payload(data):
    payload = {}

    score = data.get('teacher_score')
    if score not in (None, ''):
        try:
            score = float(score)
        except (TypeError, ValueError):
            raise ValidationError("teacher_score must be a number")
        if score < 0 or not math.isfinite(score):
            raise ValidationError("teacher_score must not be negative")
        payload['teacher_score'] = score

    for field in TEXT_FIELDS:
        value = (data.get(field) or '').strip()
        if value:
            payload[field] = value

    accurate = data.get('score_accurate')
    if accurate is not None:
        if not isinstance(accurate, bool):
            raise ValidationError("score_accurate must be true or false")
        payload['score_accurate'] = accurate

    helpful = data.get('explanation_helpful')
    if helpful not in (None, ''):
        try:
            helpful = int(helpful)
        except (TypeError, ValueError):
            raise ValidationError("explanation_helpful must be a rating from 1 to 5")
        if not 1 <= helpful <= 5:
            raise ValidationError("explanation_helpful must be a rating from 1 to 5")
        payload['explanation_helpful'] = helpful

    if not payload:
        raise ValidationError("Provide a corrected score or a comment")
    return payload


def _require_owned_evaluation(db, evaluation_id, user_id):
    """404 unless the evaluation grades an answer the caller uploaded."""
    evaluation = db.table('evaluations').select('id, answer_id').eq('id', evaluation_id).execute()
    if evaluation.data:
        answer = db.table('student_answers').select('id').eq(
            'id', evaluation.data[0]['answer_id']
        ).eq('uploaded_by', user_id).execute()
        if answer.data:
            return
    raise NotFoundError("Evaluation not found")


@feedback_bp.route('/api/evaluations/<evaluation_id>/feedback', methods=['POST'])
def submit_feedback(evaluation_id):
    """Record a teacher's review of an AI evaluation."""
    try:
        payload = _feedback_payload(request.get_json(silent=True) or {})
        payload['evaluation_id'] = evaluation_id
        payload['teacher_id'] = g.user_id

        db = get_supabase()
        _require_owned_evaluation(db, evaluation_id, g.user_id)
        result = db.table('feedback').insert(payload).execute()
        return jsonify({"success": True, "feedback": result.data[0] if result.data else payload}), 201
    except Exception as e:
        return error_response(e, 'submit-feedback')


@feedback_bp.route('/api/evaluations/<evaluation_id>/feedback', methods=['GET'])
def list_feedback(evaluation_id):
    try:
        db = get_supabase()
        _require_owned_evaluation(db, evaluation_id, g.user_id)
        result = db.table('feedback').select('*').eq(
            'evaluation_id', evaluation_id
        ).order('created_at', desc=True).execute()
        return jsonify({"feedback": result.data or []})
    except Exception as e:
        return error_response(e, 'list-feedback')
