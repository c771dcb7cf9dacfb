"""OpenDocs - PDF reader with an embedded, streaming AI chat assistant.

Combines FastAPI for the streaming chat relay, NiceGUI for the reader
interface, Pydantic for the wire schemas, and pluggable LLM providers
(Google Gemini via google-genai, OpenAI-compatible models via Agno).

Components:
    - api: HTTP endpoints and Server-Sent Events streaming
    - relay: message assembly, prompt templates and the chat relay
    - providers: adapters around the remote generative-model APIs
    - transport: UI-side channel and per-exchange subscriptions
    - documents: PDF reading and page-range text extraction
    - ui: NiceGUI reader and chat interface
    - models: Request, message and stream event schemas
"""

__version__ = "0.1.0"
