"""
Handwriting OCR through a vision-capable chat model.

The extracted text and confidence are written onto the answer together
with a best-effort embedding. If the model call or the parse fails, the
answer is marked failed and its ocr_text is left untouched.
"""
import logging
import numbers

from markwise.config import config
from markwise.errors import ParseError, UpstreamError, ValidationError
from markwise.services.clients import get_ai_client, get_supabase
from markwise.services.embeddings import try_embed
from markwise.services.model_output import parse_json_object, to_unit_interval

logger = logging.getLogger(__name__)

OCR_STATUS_PENDING = 'pending'
OCR_STATUS_DONE = 'done'
OCR_STATUS_FAILED = 'failed'

OCR_PARSE_ERROR = "Failed to parse OCR response"

OCR_SYSTEM_PROMPT = """You are a professional OCR engine specializing in handwritten educational content.
Extract all text from the image exactly as written.
Also, provide a confidence score (0-1) for the extraction based on the legibility of the handwriting.
Respond ONLY with a valid JSON object:
{
  "text": "The extracted text...",
  "confidence": 0.95
}"""


def build_ocr_messages(image_url: str) -> list:
    return [
        {"role": "system", "content": OCR_SYSTEM_PROMPT},
        {
            "role": "user",
            "content": [
                {"type": "text", "text": "Extract the text from this handwritten answer image."},
                {"type": "image_url", "image_url": {"url": image_url, "detail": "high"}},
            ],
        },
    ]


def parse_ocr_response(content: str) -> dict:
    """Validate the {text, confidence} shape; confidence is clamped to [0, 1]."""
    parsed = parse_json_object(content, OCR_PARSE_ERROR)
    text = parsed.get('text')
    confidence = parsed.get('confidence')
    if not isinstance(text, str):
        logger.error("OCR response missing text: %s", (content or "")[:2000])
        raise ParseError(OCR_PARSE_ERROR)
    if isinstance(confidence, bool) or not isinstance(confidence, numbers.Number):
        logger.error("OCR response missing numeric confidence: %s", (content or "")[:2000])
        raise ParseError(OCR_PARSE_ERROR)
    confidence = to_unit_interval(confidence)
    if confidence is None:
        raise ParseError(OCR_PARSE_ERROR)
    return {"text": text, "confidence": confidence}


def mark_ocr_failed(answer_id, error, db=None):
    """Record an OCR failure on the answer row. Never raises."""
    try:
        db = db or get_supabase()
        db.table('student_answers').update({
            "ocr_status": OCR_STATUS_FAILED,
            "ocr_error": str(error)[:500],
        }).eq('id', answer_id).execute()
    except Exception as e:
        logger.error("Could not record OCR failure for answer %s: %s", answer_id, e)


def extract_text(image_url: str, client=None) -> dict:
    """Run the vision model on an image URL and return {text, confidence}."""
    client = client or get_ai_client()
    response = client.chat.completions.create(
        model=config.ocr_model,
        messages=build_ocr_messages(image_url),
        temperature=0,
        response_format={"type": "json_object"},
    )
    if not response.choices:
        raise UpstreamError("No response from AI")
    return parse_ocr_response(response.choices[0].message.content)


def process_answer_ocr(answer_id: str, image_url: str) -> dict:
    """Extract text for an answer and persist it. Returns {text, confidence}."""
    if not answer_id or not image_url:
        raise ValidationError("Missing required fields")

    db = get_supabase()

    try:
        client = get_ai_client()
        ocr = extract_text(image_url, client=client)
    except Exception as e:
        logger.error("OCR failed for answer %s: %s", answer_id, e)
        mark_ocr_failed(answer_id, e, db=db)
        raise

    update = {
        "ocr_text": ocr["text"],
        "ocr_confidence": ocr["confidence"],
        "ocr_status": OCR_STATUS_DONE,
        "ocr_error": None,
    }
    embedding = try_embed(ocr["text"], stage='ocr_embedding', client=client)
    if embedding is not None:
        update["embedding"] = embedding
        update["embedding_model"] = config.embedding_model

    try:
        db.table('student_answers').update(update).eq('id', answer_id).execute()
    except Exception as e:
        logger.error("Could not store OCR result for answer %s: %s", answer_id, e)
        mark_ocr_failed(answer_id, e, db=db)
        raise
    logger.info("OCR complete for answer %s (confidence %.2f)", answer_id, ocr["confidence"])
    return ocr
