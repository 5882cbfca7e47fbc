"""
Campus Portal API package.

The application lives in ``api.app``; run it with ``uvicorn api.app:app``.
"""
