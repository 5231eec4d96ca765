"""
Steno Backend — Access Gates
=============================

What:  Gates that guard guild-scoped routes.
Why:   No quote may be read or written unless the caller's Discord
       credential has access to the guild in the path.
"""

from steno.exceptions import StenoError
from steno.middleware.pipeline import CONTINUE, GateResult, RequestContext, Stop


async def authenticate(ctx: RequestContext) -> GateResult:
    """
    Verify the Authorization header against the path's guild_id.

    Stops with the verifier's error: 400 for a missing or malformed header,
    403 when Discord does not list the guild, 500 when Discord could not be
    asked.
    """
    try:
        await ctx.verifier.verify(ctx.guild_id, ctx.request.headers.get("Authorization"))
    except StenoError as e:
        return Stop.from_error(e)
    return CONTINUE
