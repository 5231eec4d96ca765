# Services package init
"""
Steno Backend — Services Layer
===============================

Service Inventory:
    - QuoteStore (abstract): persistence contract for (guild, user) partitions
    - RedisQuoteStore: QuoteStore over Redis lists
    - CredentialVerifier: Discord guild-access check for a bot credential
    - snapshot: JSON import/export of every partition

Both the store and the verifier are built once by the app factory and shared
by every request through app.state.
"""
