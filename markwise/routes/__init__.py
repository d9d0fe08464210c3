"""
Markwise API Routes
===================

All API route blueprints for the Markwise application.

Usage:
    from markwise.routes import register_routes
    register_routes(app)
"""
from .grading_routes import grading_bp
from .ocr_routes import ocr_bp
from .document_routes import document_bp
from .question_routes import question_bp
from .answer_routes import answer_bp
from .feedback_routes import feedback_bp
from .dashboard_routes import dashboard_bp


def register_routes(app):
    """Register all route blueprints with the Flask app."""
    app.register_blueprint(grading_bp)
    app.register_blueprint(ocr_bp)
    app.register_blueprint(document_bp)
    app.register_blueprint(question_bp)
    app.register_blueprint(answer_bp)
    app.register_blueprint(feedback_bp)
    app.register_blueprint(dashboard_bp)


__all__ = [
    'register_routes',
    'grading_bp',
    'ocr_bp',
    'document_bp',
    'question_bp',
    'answer_bp',
    'feedback_bp',
    'dashboard_bp',
]
