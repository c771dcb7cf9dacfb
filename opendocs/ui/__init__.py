"""NiceGUI interface - thin reader and chat layer.

Responsibilities:
    - Opening a PDF through the native file dialog (desktop) or a path prompt
    - Choosing the context scope: whole document, current page, page range
    - Chat display with streaming, stop and new-chat controls
    - Settings dialog for API key, model and custom instructions

Contains minimal business logic. Talks to the relay through the transport
bridge only.
"""
