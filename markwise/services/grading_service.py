"""
Retrieval-Augmented Answer Grading
==================================

Grades a student's (OCR-transcribed) handwritten answer against the
teacher's ideal answer.

Message order sent to the model:
1. Base system instruction fixing the JSON schema.
2. Reference excerpts from the teacher's own documents, if any match the
   question (threshold 0.70, up to 5 chunks).
3. Past teacher corrections on similar answers, if any (threshold 0.85,
   up to 3), used to calibrate strictness.
4. The user turn: question, ideal answer, student text, max marks, and
   the answer image when a signed URL is available.

Retrieval is best-effort: any failure there is recorded as a soft failure
and grading continues without the extra context. The model's marks are
always clamped to [0, max_marks] before the evaluation is stored.
"""
import logging
import math
import numbers

from markwise.config import (
    CONTEXT_MATCH_COUNT,
    CONTEXT_MATCH_THRESHOLD,
    DEFAULT_MAX_MARKS,
    FEEDBACK_MATCH_COUNT,
    FEEDBACK_MATCH_THRESHOLD,
    config,
)
from markwise.errors import ParseError, UpstreamError, ValidationError
from markwise.services.clients import get_ai_client, get_supabase
from markwise.services.embeddings import embed_text
from markwise.services.model_output import clamp_marks, parse_json_object, to_unit_interval
from markwise.services.observability import record_soft_failure

logger = logging.getLogger(__name__)

EVALUATION_PARSE_ERROR = "Failed to parse AI evaluation response"

NO_OCR_PLACEHOLDER = (
    "[No OCR text available - please analyze the handwritten answer from the image if provided]"
)

GRADING_SYSTEM_PROMPT = """You are an expert educator evaluating a student's handwritten answer. You must respond ONLY with a valid JSON object (no markdown, no code fences). The JSON must have these exact fields:

{
  "similarity_score": <number 0-1>,
  "concept_coverage": <number 0-1>,
  "final_score": <number 0-1>,
  "marks": <number 0 to max_marks>,
  "explanation": "<1-2 sentence overall assessment>",
  "strengths": "<specific things done well>",
  "weaknesses": "<specific gaps or errors>",
  "missing_concepts": ["<concept1>", "<concept2>"],
  "suggestions": "<actionable advice for improvement>"
}

Be specific, constructive, and reference actual content. Do NOT hallucinate concepts not in the ideal answer."""


# =============================================================================
# RETRIEVAL
# =============================================================================

def find_similar_feedback(embedding, db=None):
    """Past teacher corrections on answers similar to this one."""
    db = db or get_supabase()
    result = db.rpc('find_similar_feedback', {
        "query_embedding": embedding,
        "match_threshold": FEEDBACK_MATCH_THRESHOLD,
        "match_count": FEEDBACK_MATCH_COUNT,
    }).execute()
    return result.data or []


def find_relevant_context(embedding, user_id, db=None):
    """Chunks of the teacher's own reference documents relevant to the question."""
    db = db or get_supabase()
    result = db.rpc('find_relevant_context', {
        "query_embedding": embedding,
        "match_threshold": CONTEXT_MATCH_THRESHOLD,
        "match_count": CONTEXT_MATCH_COUNT,
        "_user_id": user_id,
    }).execute()
    return result.data or []


def build_context_message(chunks):
    context_text = "\n\n---\n\n".join(c.get('chunk_content', '') for c in chunks)
    return {
        "role": "system",
        "content": (
            "CRITICAL INSTRUCTION: Use the following official reference material (textbook excerpts) "
            "to grade the accuracy of the student's answer. Prioritize this source over general "
            "knowledge if they conflict:\n\n" + context_text
        ),
    }


def build_feedback_message(feedback_rows):
    feedback_context = (
        "IMPORTANT: I have graded similar answers before. Please use these past teacher corrections "
        "as a guide to calibrate your grading (be stricter or more lenient as indicated):\n"
    )
    for i, fb in enumerate(feedback_rows, start=1):
        feedback_context += (
            f'\n[Example {i}] Teacher Correction: "{fb.get("teacher_comments")}" '
            f'(Score Adjusted to: {fb.get("teacher_corrected_score")})'
        )
    return {"role": "system", "content": feedback_context}


def gather_grounding(question_text, student_text, user_id=None, client=None, db=None):
    """
    Retrieve reference chunks and past corrections.

    Returns (context_chunks, past_feedback). Each lookup fails open: an
    error is recorded and that lookup contributes nothing.
    """
    client = client or get_ai_client()
    db = db or get_supabase()
    past_feedback = []
    context_chunks = []

    try:
        answer_embedding = embed_text(f"{question_text} {student_text}", client=client)
        past_feedback = find_similar_feedback(answer_embedding, db=db)
    except Exception as e:
        record_soft_failure('feedback_retrieval', e)

    if user_id:
        try:
            question_embedding = embed_text(question_text, client=client)
            context_chunks = find_relevant_context(question_embedding, user_id, db=db)
        except Exception as e:
            record_soft_failure('context_retrieval', e, user_id=user_id)

    if context_chunks:
        logger.info("Found %d relevant reference chunks", len(context_chunks))
    if past_feedback:
        logger.info("Found %d relevant past teacher corrections", len(past_feedback))
    return context_chunks, past_feedback


# =============================================================================
# PROMPT
# =============================================================================

def build_grading_messages(question_text, ideal_answer, max_marks, ocr_text, image_url=None,
                           context_chunks=None, past_feedback=None):
    """Assemble the chat messages for one grading call."""
    student_text = ocr_text or NO_OCR_PLACEHOLDER

    messages = [{"role": "system", "content": GRADING_SYSTEM_PROMPT}]
    if context_chunks:
        messages.append(build_context_message(context_chunks))
    if past_feedback:
        messages.append(build_feedback_message(past_feedback))

    user_content = [{
        "type": "text",
        "text": (
            f"Question: {question_text} \n\n"
            f"Ideal Answer: {ideal_answer} \n\n"
            f"Student Answer(OCR extracted): {student_text} \n\n"
            f"Maximum Marks: {max_marks} \n\n"
            "Evaluate this answer and return the JSON."
        ),
    }]
    if image_url:
        user_content.append({
            "type": "image_url",
            "image_url": {"url": image_url, "detail": "high"},
        })
    messages.append({"role": "user", "content": user_content})
    return messages


# =============================================================================
# RESULT HANDLING
# =============================================================================

def _as_text(value):
    if value is None:
        return None
    if isinstance(value, list):
        return "\n".join(str(v) for v in value)
    return str(value)


def normalize_evaluation(parsed, max_marks):
    """
    Validate and clamp a parsed model verdict.

    marks must be a finite number; it is clamped to [0, max_marks]. Score
    fields are clamped to [0, 1].
    """
    marks = parsed.get('marks')
    if isinstance(marks, str):
        try:
            marks = float(marks)
        except ValueError:
            marks = None
    if isinstance(marks, bool) or not isinstance(marks, numbers.Number) or not math.isfinite(marks):
        logger.error("AI evaluation has no usable marks: %r", parsed.get('marks'))
        raise ParseError(EVALUATION_PARSE_ERROR)

    missing = parsed.get('missing_concepts') or []
    if isinstance(missing, str):
        missing = [missing]

    return {
        "similarity_score": to_unit_interval(parsed.get('similarity_score')),
        "concept_coverage": to_unit_interval(parsed.get('concept_coverage')),
        "final_score": to_unit_interval(parsed.get('final_score')),
        "marks": clamp_marks(marks, max_marks),
        "explanation": _as_text(parsed.get('explanation')),
        "strengths": _as_text(parsed.get('strengths')),
        "weaknesses": _as_text(parsed.get('weaknesses')),
        "missing_concepts": [str(c) for c in missing],
        "suggestions": _as_text(parsed.get('suggestions')),
    }


def _coerce_max_marks(max_marks):
    if max_marks in (None, ''):
        return DEFAULT_MAX_MARKS
    try:
        value = float(max_marks)
    except (TypeError, ValueError):
        raise ValidationError("maxMarks must be a number")
    if value <= 0 or not math.isfinite(value):
        raise ValidationError("maxMarks must be a positive number")
    return int(value) if value.is_integer() else value


# =============================================================================
# PIPELINE
# =============================================================================

def evaluate_answer(answer_id, question_text, ideal_answer, max_marks=None, ocr_text=None,
                    image_url=None, user_id=None):
    """
    Grade one answer and store the evaluation.

    Returns the stored evaluation record. Raises ValidationError for
    missing fields, UpstreamError when the model or database fails, and
    ParseError when the model reply is not the expected JSON object.
    """
    if not answer_id or not question_text or not ideal_answer:
        raise ValidationError("Missing required fields")
    max_marks = _coerce_max_marks(max_marks)

    client = get_ai_client()
    db = get_supabase()

    student_text = ocr_text or NO_OCR_PLACEHOLDER
    context_chunks, past_feedback = gather_grounding(
        question_text, student_text, user_id=user_id, client=client, db=db
    )

    messages = build_grading_messages(
        question_text, ideal_answer, max_marks, ocr_text, image_url,
        context_chunks=context_chunks, past_feedback=past_feedback,
    )

    logger.info("Grading answer %s with %s", answer_id, config.grading_model)
    response = client.chat.completions.create(
        model=config.grading_model,
        messages=messages,
        temperature=0,
    )
    content = response.choices[0].message.content if response.choices else None
    if not content:
        raise UpstreamError("No response from AI")

    parsed = parse_json_object(content, EVALUATION_PARSE_ERROR)
    evaluation = normalize_evaluation(parsed, max_marks)

    row = {"answer_id": answer_id, **evaluation, "model_version": config.grading_model}
    try:
        result = db.table('evaluations').insert(row).execute()
    except Exception as e:
        logger.error("DB insert error for answer %s: %s", answer_id, e)
        raise UpstreamError("Failed to store evaluation") from e

    stored = result.data[0] if result.data else row
    if stored.get('id'):
        set_active_evaluation(answer_id, stored['id'], db=db)
    return stored


def set_active_evaluation(answer_id, evaluation_id, db=None):
    """Point the answer at its authoritative evaluation. Best-effort."""
    db = db or get_supabase()
    try:
        db.table('student_answers').update(
            {"active_evaluation_id": evaluation_id}
        ).eq('id', answer_id).execute()
    except Exception as e:
        record_soft_failure('active_evaluation', e, answer_id=answer_id)
