# src/api/__init__.py
# =====================
# API Layer — VoiceScribe
#
# Responsibility:
#   - Expose POST /api/transcribe (multipart audio upload + options JSON)
#   - Expose POST /api/analyze and POST /api/export/txt
#   - Map domain exceptions to HTTP status codes
#
# The FastAPI application object lives in src.api.upload.
