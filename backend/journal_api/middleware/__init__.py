"""
Journal API — Middleware Package
=================================

Middleware Chain (outermost first):
    Request → [Request ID] → [Access Log] → [GZip] → [CORS] → Route Handler

    1. Request ID first, so every later log line can be correlated
    2. Access log times everything below it
    3. GZip and CORS are Starlette's own

Starlette runs middleware in reverse order of `add_middleware`; see
create_app() in main.py.
"""
