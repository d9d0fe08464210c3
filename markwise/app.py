#!/usr/bin/env python3
"""
Markwise - AI-Assisted Handwritten Answer Grading
=================================================
Run: python3 -m markwise.app
API served on: http://localhost:3000/api/
"""
import atexit
import logging

from flask import Flask, jsonify, request
from flask_cors import CORS

from markwise.auth import init_auth
from markwise.config import HOST, LOG_LEVEL, PORT, DEBUG
from markwise.routes import register_routes
from markwise.services import ocr_tasks

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = Flask(__name__)

# Room for a batch of up to 50 answer images of 10MB each
app.config['MAX_CONTENT_LENGTH'] = 50 * 10 * 1024 * 1024

# Permissive CORS for the browser client; pre-flight is answered without auth
CORS(app, resources={r"/api/*": {"origins": "*"}}, send_wildcard=True)

# ══════════════════════════════════════════════════════════════
# AUTHENTICATION
# ══════════════════════════════════════════════════════════════
init_auth(app)

# ══════════════════════════════════════════════════════════════
# ROUTES
# ══════════════════════════════════════════════════════════════
register_routes(app)

atexit.register(ocr_tasks.shutdown)


@app.errorhandler(404)
def not_found(e):
    return jsonify({"error": "Not found: " + request.path}), 404


@app.errorhandler(405)
def method_not_allowed(e):
    return jsonify({"error": "Method not allowed"}), 405


@app.errorhandler(413)
def too_large(e):
    return jsonify({"error": "Upload too large"}), 413


@app.errorhandler(500)
def server_error(e):
    logger.error("Unhandled error on %s: %s", request.path, e)
    return jsonify({"error": str(getattr(e, 'original_exception', e))}), 500


# ══════════════════════════════════════════════════════════════
# MAIN
# ══════════════════════════════════════════════════════════════

if __name__ == '__main__':
    print()
    print("+" + "=" * 50 + "+")
    print("|  Markwise - Handwritten Answer Grading           |")
    print("+" + "=" * 50 + "+")
    print("|                                                  |")
    print(f"|  API: http://localhost:{PORT}/api/health".ljust(51) + "|")
    print("|                                                  |")
    print("|  Press Ctrl+C to stop                            |")
    print("+" + "=" * 50 + "+")
    print()

    app.run(host=HOST, port=PORT, debug=DEBUG)
