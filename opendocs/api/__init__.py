"""FastAPI endpoints for the OpenDocs chat relay.

Endpoints:
    - GET /health: Service health status
    - POST /chat/stream: One chat exchange streamed as Server-Sent Events
    - POST /chat/cancel/{exchange_id}: Stop generating for an exchange
"""

from opendocs.api.app import create_app

__all__ = ["create_app"]
