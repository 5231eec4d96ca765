# Routes package init
"""
Steno Backend — API Routes Package
===================================

Route Inventory:
    - quotes.py:  GET    /quotes/{guild_id}/{user_id}   (list / search / random)
                  POST   /quotes/{guild_id}/{user_id}   (add)
                  DELETE /quotes/{guild_id}/{user_id}   (remove)
    - health.py:  GET    /health                        (store connectivity)

Design Principle:
    Routes are THIN: read the request, make one store call, shape the
    response. The quote routes are gated; see steno.middleware.pipeline.
"""
