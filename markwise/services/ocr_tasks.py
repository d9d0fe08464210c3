"""
Background OCR jobs.

Uploads return as soon as the answer row exists (ocr_status 'pending').
OCR then runs on a small thread pool and moves the row to 'done' or
'failed', which is what the UI polls. Nothing is retried automatically.
"""
import concurrent.futures
import logging
import threading

from markwise.config import OCR_WORKERS
from markwise.services.ocr_service import mark_ocr_failed, process_answer_ocr
from markwise.services.storage import create_signed_url

logger = logging.getLogger(__name__)

_executor = None
_executor_lock = threading.Lock()
_pending = set()


def _get_executor():
    global _executor
    with _executor_lock:
        if _executor is None:
            _executor = concurrent.futures.ThreadPoolExecutor(
                max_workers=OCR_WORKERS, thread_name_prefix="ocr"
            )
        return _executor


def _run_ocr(answer_id, image_path):
    try:
        image_url = create_signed_url(image_path)
    except Exception as e:
        mark_ocr_failed(answer_id, e)
        raise
    return process_answer_ocr(answer_id, image_url)


def _on_done(answer_id, future):
    with _executor_lock:
        _pending.discard(future)
    error = future.exception()
    if error is not None:
        # Already recorded on the answer row as ocr_status='failed'
        logger.error("Background OCR failed for answer %s: %s", answer_id, error)


def schedule_ocr(answer_id, image_path):
    """Queue OCR for an uploaded answer. Returns the Future."""
    future = _get_executor().submit(_run_ocr, answer_id, image_path)
    with _executor_lock:
        _pending.add(future)
    future.add_done_callback(lambda f: _on_done(answer_id, f))
    logger.info("Queued OCR for answer %s", answer_id)
    return future


def wait_for_pending(timeout=None):
    """Block until queued OCR jobs finish (used at shutdown and in tests)."""
    with _executor_lock:
        futures = list(_pending)
    concurrent.futures.wait(futures, timeout=timeout)


def shutdown():
    global _executor
    with _executor_lock:
        executor, _executor = _executor, None
    if executor is not None:
        executor.shutdown(wait=True)
