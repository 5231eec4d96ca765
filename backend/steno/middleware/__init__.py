# Middleware package init
"""
Steno Backend — Middleware Package
===================================

What:  Everything that runs around a route handler.

Contents:
    - request_id.py: Starlette middleware, applies to every path
    - pipeline.py:   Route / Continue / Stop, the per-route gate chain
    - gates.py:      authenticate (Discord guild check)

Gate Chain (per quote route, order matters!):
    Request → [log_request] → [authenticate] → handler

    1. log_request FIRST: every attempt is logged, even ones that fail auth
    2. authenticate: no guild data is touched before the guild check passes
    3. handler: the terminal check, performs the store call
"""
