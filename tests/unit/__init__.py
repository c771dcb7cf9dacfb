"""Unit tests for individual components in isolation.

Coverage:
    - relay/: message assembly, prompts, error classification, the relay loop
    - providers/: message conversion and error translation with mocked SDKs
    - transport/: subscriptions and channel dispatch
    - documents/: PDF validation and page-range extraction
"""
