"""
Steno Backend — Abstract Quote Store Interface
===============================================

What:  Abstract base class defining the persistence contract for quotes.
Why:   Handlers depend on this interface, not on Redis. Tests and alternative
       backends plug in without touching the routes.
How:   Concrete stores implement the five core operations plus snapshot and
       lifecycle helpers.

Partitioning:
    Every quote lives in an ordered sequence identified by (guild_id, user_id).
    Order is insertion order; no quote carries its own index.

Cost model:
    A store backed by an ordered list must materialize the whole partition
    for search and random sampling, and scan it for removal. Every operation
    except push is O(n) in partition size. This is fine for the small
    per-user partitions the service is built for and is not suited to large
    ones.
"""

import random
from abc import ABC, abstractmethod
from typing import Dict, List

from steno.schemas.quote import Quote


class QuoteStore(ABC):
    """
    Persistence contract for quotes keyed by (guild_id, user_id).

    Contract:
        - push() appends; duplicates are allowed
        - remove() deletes every structurally equal entry; zero matches is success
        - get_all() raises NotFoundError for an absent or empty partition
        - search() filters get_all(); zero matches is an empty list
        - get_random() draws uniformly from get_all()
        - Backend failures surface as StoreError
    """

    @abstractmethod
    async def push(self, guild_id: str, user_id: str, quote: Quote) -> None:
        """Append `quote` to the end of the partition, creating it if needed."""
        ...

    @abstractmethod
    async def remove(self, guild_id: str, user_id: str, quote: Quote) -> int:
        """
        Remove every entry whose serialized form equals `quote.serialize()`.

        Returns:
            Number of entries removed (0 is not an error).
        """
        ...

    @abstractmethod
    async def get_all(self, guild_id: str, user_id: str) -> List[Quote]:
        """
        Return the full partition in insertion order.

        Raises:
            NotFoundError: partition is absent, empty or holds nothing decodable
            StoreError: backend failure
        """
        ...

    async def search(self, guild_id: str, user_id: str, pattern: str) -> List[Quote]:
        """
        Quotes whose text contains `pattern` (case-sensitive substring).

        The empty pattern matches everything. An empty result is returned as
        [], not NotFoundError; the HTTP layer applies the 404 policy.
        """
        quotes = await self.get_all(guild_id, user_id)
        return [quote for quote in quotes if pattern in quote.text]

    async def get_random(self, guild_id: str, user_id: str) -> Quote:
        """
        One quote drawn uniformly at random from the partition.

        Fetches the whole partition then draws an index; each call is an
        independent draw.
        """
        quotes = await self.get_all(guild_id, user_id)
        return quotes[random.randrange(len(quotes))]

    @abstractmethod
    async def dump(self) -> Dict[str, List[Quote]]:
        """Every partition, keyed by its storage key."""
        ...

    @abstractmethod
    async def load(self, data: Dict[str, List[Quote]]) -> None:
        """Replace each given partition with the given quotes, in order."""
        ...

    @abstractmethod
    async def ping(self) -> bool:
        """True if the backend is reachable."""
        ...

    async def close(self) -> None:
        """Release backend connections. Default: nothing to release."""
        return None
