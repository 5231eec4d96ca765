"""
Steno Backend — Application Package Initializer
================================================

What: Marks the `steno` directory as a Python package.
Why:  Enables module imports like `from steno.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by pytest and uvicorn.

Architecture Note:
    The service is split into thin layers:

    ┌─────────────────────────────────────┐
    │     Routes (terminal checks)        │  ← HTTP in, HTTP out
    ├─────────────────────────────────────┤
    │     Gate Pipeline (middleware)      │  ← log → authenticate → handler
    ├─────────────────────────────────────┤
    │     Services (store, verifier)      │  ← Redis lists, Discord API
    ├─────────────────────────────────────┤
    │     Schemas (data)                  │  ← Pydantic Quote / Guild models
    └─────────────────────────────────────┘

    Routes never talk to Redis directly; they go through the QuoteStore
    they are handed on the request context. The store and the credential
    verifier are created by the app factory and can be swapped in tests.
"""

__version__ = "1.0.0"
