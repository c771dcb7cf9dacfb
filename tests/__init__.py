"""Test package for OpenDocs.

Structure:
    - unit/: Individual function and class tests
    - integration/: Relay, HTTP endpoints and transport bridge together

Provider SDKs are never called over the network: a scripted adapter drives
the relay and SDK clients are replaced with mocks. Leverages pytest with
pytest-check for soft assertions.
"""
