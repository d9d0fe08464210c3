"""
Markwise Services
=================

Business logic for the Markwise backend.

Services:
- grading_service: Retrieval-augmented answer grading
- ocr_service / ocr_tasks: Handwriting extraction and its background jobs
- document_service: Reference document chunking and embedding
- answer_service: Answer upload, listing and OCR correction
- dashboard_service: Dashboard statistics
"""

# Services are imported directly when needed to avoid circular imports
# Example: from markwise.services.grading_service import evaluate_answer

__all__ = [
    'grading_service',
    'ocr_service',
    'ocr_tasks',
    'document_service',
    'answer_service',
    'dashboard_service',
]
