"""Integration tests for components working together as a system.

Coverage:
    - SSE chat endpoint through httpx ASGITransport
    - HttpTransport and ChatChannel against the real FastAPI app
"""
