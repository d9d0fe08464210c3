"""
Markwise Backend Package
========================

Flask-based backend for grading handwritten student answers with
retrieval-augmented AI evaluation.

Structure:
- routes/: API route blueprints
- services/: OCR, ingestion, grading and storage services
- config.py: Configuration management
- auth.py: Supabase JWT authentication
"""

from .config import config, Config

__version__ = "1.0.0"

__all__ = ['config', 'Config']
