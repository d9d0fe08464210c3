"""
Student answer records: upload, listing, OCR correction and re-grading.
"""
import logging

from markwise.config import ALLOWED_UPLOAD_TYPES, MAX_UPLOAD_BYTES, config
from markwise.errors import NotFoundError, ValidationError
from markwise.services.clients import get_supabase
from markwise.services.embeddings import try_embed
from markwise.services.grading_service import evaluate_answer
from markwise.services.image_preprocessing import enhance_for_ocr
from markwise.services.observability import record_soft_failure
from markwise.services.ocr_service import OCR_STATUS_DONE, OCR_STATUS_PENDING
from markwise.services.ocr_tasks import schedule_ocr
from markwise.services.storage import create_signed_url, upload_answer_image

logger = logging.getLogger(__name__)

ANSWER_SELECT = '*, questions(question_text, ideal_answer, max_marks), evaluations(*)'


def check_upload(filename, content_type, size):
    """Return a reason string if the file cannot be accepted, else None."""
    if content_type not in ALLOWED_UPLOAD_TYPES:
        return f"{filename}: only JPG, PNG or PDF files are accepted"
    if size > MAX_UPLOAD_BYTES:
        return f"{filename}: file is larger than 10MB"
    return None


def create_answer(user_id, question_id, filename, data, content_type, student_name=None,
                  enhance=True):
    """
    Store one uploaded answer image and queue its OCR.

    The row is created with ocr_status 'pending'; OCR fills it in later.
    """
    if not question_id:
        raise ValidationError("Select a question before uploading answers")

    if enhance and content_type.startswith('image/'):
        data = enhance_for_ocr(data)
        content_type = 'image/jpeg'
        filename = filename.rsplit('.', 1)[0] + '.jpg' if filename else 'answer.jpg'

    path = upload_answer_image(
        user_id, filename, data, content_type,
        default_ext=ALLOWED_UPLOAD_TYPES.get(content_type, 'jpg'),
    )

    db = get_supabase()
    result = db.table('student_answers').insert({
        "question_id": question_id,
        "student_name": (student_name or '').strip() or None,
        "image_path": path,
        "uploaded_by": user_id,
        "ocr_status": OCR_STATUS_PENDING,
    }).execute()
    answer = result.data[0]

    schedule_ocr(answer['id'], path)
    return answer


def authoritative_evaluation(answer):
    """The evaluation to display: the active pointer, else the most recent."""
    evaluations = answer.get('evaluations') or []
    if not evaluations:
        return None
    active_id = answer.get('active_evaluation_id')
    if active_id:
        for evaluation in evaluations:
            if evaluation.get('id') == active_id:
                return evaluation
    return max(evaluations, key=lambda e: e.get('evaluated_at') or '')


def require_owned_question(question_id, user_id):
    """Raise NotFoundError unless the question was created by the caller."""
    db = get_supabase()
    result = db.table('questions').select('id').eq('id', question_id).eq(
        'created_by', user_id
    ).execute()
    if not result.data:
        raise NotFoundError("Question not found")


def list_answers(user_id):
    """The caller's answers, newest first."""
    db = get_supabase()
    result = db.table('student_answers').select(ANSWER_SELECT).eq(
        'uploaded_by', user_id
    ).order('uploaded_at', desc=True).execute()
    answers = result.data or []
    for answer in answers:
        answer['evaluation'] = authoritative_evaluation(answer)
    return answers


def get_answer(answer_id, user_id):
    db = get_supabase()
    result = db.table('student_answers').select(ANSWER_SELECT).eq('id', answer_id).eq(
        'uploaded_by', user_id
    ).execute()
    if not result.data:
        raise NotFoundError("Answer not found")
    answer = result.data[0]
    answer['evaluation'] = authoritative_evaluation(answer)
    return answer


def correct_ocr(answer_id, ocr_text, user_id):
    """Teacher-corrected transcript. Confidence becomes 1.0."""
    if ocr_text is None or not str(ocr_text).strip():
        raise ValidationError("ocr_text is required")

    update = {
        "ocr_text": ocr_text,
        "ocr_confidence": 1.0,
        "ocr_status": OCR_STATUS_DONE,
        "ocr_error": None,
    }
    embedding = try_embed(ocr_text, stage='ocr_embedding')
    if embedding is not None:
        update["embedding"] = embedding
        update["embedding_model"] = config.embedding_model

    db = get_supabase()
    result = db.table('student_answers').update(update).eq('id', answer_id).eq(
        'uploaded_by', user_id
    ).execute()
    if not result.data:
        raise NotFoundError("Answer not found")
    return result.data[0]


def retry_ocr(answer_id, user_id):
    """Manually re-run OCR for an answer."""
    answer = get_answer(answer_id, user_id)
    db = get_supabase()
    db.table('student_answers').update(
        {"ocr_status": OCR_STATUS_PENDING, "ocr_error": None}
    ).eq('id', answer_id).execute()
    schedule_ocr(answer_id, answer['image_path'])
    return {"id": answer_id, "ocr_status": OCR_STATUS_PENDING}


def grade_answer(answer_id, user_id):
    """Load the caller's answer and its question, then run the grading pipeline."""
    answer = get_answer(answer_id, user_id)
    question = answer.get('questions') or {}

    image_url = None
    if answer.get('image_path'):
        try:
            image_url = create_signed_url(answer['image_path'])
        except Exception as e:
            record_soft_failure('signed_url', e, answer_id=answer_id)

    return evaluate_answer(
        answer_id=answer_id,
        question_text=question.get('question_text'),
        ideal_answer=question.get('ideal_answer'),
        max_marks=question.get('max_marks'),
        ocr_text=answer.get('ocr_text'),
        image_url=image_url,
        user_id=user_id,
    )
