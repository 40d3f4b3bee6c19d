"""
HTTP API over the annotation store and the town report (FastAPI).

Entry point:
    python -m api.server --config config/params.yaml
"""
