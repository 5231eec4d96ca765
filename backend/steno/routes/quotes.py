"""
Steno Backend — Quote Route Handlers
=====================================

What:  GET/POST/DELETE /quotes/{guild_id}/{user_id}.
Why:   The HTTP face of the quote store, one partition per (guild, user).
How:   Each handler is the terminal check of a gated route:
       log_request → authenticate → handler. Handlers translate the request
       into one QuoteStore call and store the response on the context.

Boundary policy (all GET paths):
    An empty result is 404 whether it came from an empty partition or a
    search with no matches. A non-empty result is truncated to `limit`,
    keeping store order. No `limit` means no truncation.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter
from starlette.responses import JSONResponse, Response

from steno.exceptions import BadRequestError, NotFoundError
from steno.middleware.gates import authenticate
from steno.middleware.pipeline import CONTINUE, GateResult, RequestContext, Route
from steno.schemas.quote import Quote

logger = logging.getLogger(__name__)

QUOTES_PATH = "/quotes/{guild_id}/{user_id}"

JSON_CONTENT_TYPES = ("application/json", "text/json")


def is_json_content(content_type: Optional[str]) -> bool:
    """True if the Content-Type header names a JSON media type."""
    if not content_type:
        return False
    return any(media in content_type for media in JSON_CONTENT_TYPES)


def parse_limit(raw: Optional[str]) -> Optional[int]:
    """
    Parse the `limit` query parameter.

    Returns None (unbounded) when absent or blank.

    Raises:
        BadRequestError: not an integer, or less than 1
    """
    if raw is None or raw.strip() == "":
        return None
    try:
        limit = int(raw)
    except ValueError:
        raise BadRequestError(message="invalid request, limit must be an integer", field="limit")
    if limit < 1:
        raise BadRequestError(message="invalid request, limit must be at least 1", field="limit")
    return limit


def apply_limit(quotes: List[Quote], limit: Optional[int]) -> List[Quote]:
    """Truncate to at most `limit` quotes, preserving order."""
    if limit is None:
        return quotes
    return quotes[:limit]


# ══════════════════════════════════════════════════════════════════════════
# Terminal checks
# ══════════════════════════════════════════════════════════════════════════

async def get_quotes(ctx: RequestContext) -> GateResult:
    """
    List, search or sample a user's quotes.

    Query parameters:
        search: substring filter (takes precedence over random)
        random: "true" (any case) for a single random quote
        limit:  maximum number of quotes returned
    """
    params = ctx.request.query_params
    search = params.get("search", "")
    random = params.get("random", "").lower() == "true"
    limit = parse_limit(params.get("limit"))

    if search:
        quotes = await ctx.store.search(ctx.guild_id, ctx.user_id, search)
    elif random:
        quotes = [await ctx.store.get_random(ctx.guild_id, ctx.user_id)]
    else:
        quotes = await ctx.store.get_all(ctx.guild_id, ctx.user_id)

    if not quotes:
        raise NotFoundError(guild_id=ctx.guild_id, user_id=ctx.user_id)

    quotes = apply_limit(quotes, limit)
    ctx.response = JSONResponse(content=[quote.to_response() for quote in quotes])
    return CONTINUE


async def add_quote(ctx: RequestContext) -> GateResult:
    """
    Append the JSON quote in the body to the partition.

    The body must be sent with a JSON Content-Type. `author_id` defaults to
    the path's user_id; `id` and `date` are generated when missing.
    """
    if not is_json_content(ctx.request.headers.get("content-type")):
        raise BadRequestError(message="expected json body", field="Content-Type")

    quote = Quote.from_request_body(await ctx.request.body())
    if not quote.author_id:
        quote.author_id = ctx.user_id

    await ctx.store.push(ctx.guild_id, ctx.user_id, quote)
    logger.info("Added quote %s to %s:%s", quote.id, ctx.guild_id, ctx.user_id)

    ctx.response = Response(status_code=200)
    return CONTINUE


async def remove_quote(ctx: RequestContext) -> GateResult:
    """
    Remove every stored quote structurally equal to the JSON body.

    Matching is on the full serialized quote, not the id alone, so the body
    should be a quote exactly as GET returned it. A body that matches nothing
    still succeeds.
    """
    quote = Quote.from_request_body(await ctx.request.body())

    removed = await ctx.store.remove(ctx.guild_id, ctx.user_id, quote)
    if removed:
        logger.info("Removed %d copies of quote %s from %s:%s", removed, quote.id, ctx.guild_id, ctx.user_id)
    else:
        logger.info("No stored quote matched %s in %s:%s", quote.id, ctx.guild_id, ctx.user_id)

    ctx.response = Response(status_code=200)
    return CONTINUE


# ══════════════════════════════════════════════════════════════════════════
# Route registration
# ══════════════════════════════════════════════════════════════════════════

# Shared prefix; each route below finishes its own clone
base_route = Route().log().gate(authenticate)

router = APIRouter(tags=["Quotes"])

router.add_api_route(
    QUOTES_PATH,
    base_route.clone().finish(get_quotes),
    methods=["GET"],
    name="get_quotes",
    response_model=None,
    summary="List, search or sample a user's quotes",
)
router.add_api_route(
    QUOTES_PATH,
    base_route.clone().finish(add_quote),
    methods=["POST"],
    name="add_quote",
    response_model=None,
    summary="Add a quote",
)
router.add_api_route(
    QUOTES_PATH,
    base_route.clone().finish(remove_quote),
    methods=["DELETE"],
    name="remove_quote",
    response_model=None,
    summary="Remove a quote by structural match",
)
