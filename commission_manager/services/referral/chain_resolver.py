"""
Referral chain resolution.

Walks the referred_by links of a seller outward to the root and returns
every ancestor with its depth (1 = direct referrer).
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from loguru import logger

from commission_manager.models.person import Person
from commission_manager.utils.exceptions import (
    CycleDetected,
    DanglingReferrer,
    MissingSeller,
)


@dataclass(frozen=True)
class ReferralChainEntry:
    """Ancestor of a seller at a given depth."""

    person_id: int
    depth: int


class ReferralChainResolver:
    """
    Resolves referral chains over a snapshot of the person graph.

    The resolver is side-effect free. The same snapshot always produces
    the same ordered chain.
    """

    def __init__(
        self,
        referrers: Mapping[int, int | None],
        max_depth: int | None = None,
    ) -> None:
        """
        Initialize resolver.

        Args:
            referrers: Mapping of person ID to referred_by ID (None for roots)
            max_depth: Maximum chain length. Defaults to the number of
                       people, which a valid chain can never reach.
        """
        self._referrers = dict(referrers)
        self._max_depth = max_depth if max_depth is not None else len(self._referrers)

    @classmethod
    def from_people(
        cls, people: Iterable[Person], max_depth: int | None = None
    ) -> "ReferralChainResolver":
        """Build resolver from Person rows."""
        return cls(
            {person.id: person.referred_by for person in people},
            max_depth=max_depth,
        )

    @property
    def max_depth(self) -> int:
        """Maximum chain length followed."""
        return self._max_depth

    def resolve(self, seller_id: int) -> list[ReferralChainEntry]:
        """
        Resolve the referral chain of a seller.

        The seller is never part of the chain. A person without
        referrer terminates the chain.

        Args:
            seller_id: Seller person ID

        Returns:
            Ancestors ordered from direct referrer (depth 1) to root

        Raises:
            MissingSeller: Seller is not in the snapshot
            CycleDetected: Traversal revisits a person
            DanglingReferrer: A referred_by points outside the snapshot
        """
        if seller_id not in self._referrers:
            raise MissingSeller(f"Seller {seller_id} not found")

        chain: list[ReferralChainEntry] = []
        path = [seller_id]
        current = self._referrers[seller_id]
        depth = 1

        while current is not None:
            if depth > self._max_depth:
                logger.info(
                    "Referral chain truncated at max depth",
                    extra={"seller_id": seller_id, "max_depth": self._max_depth},
                )
                break

            if current in path:
                logger.error(
                    "Referral cycle detected",
                    extra={"seller_id": seller_id, "path": path, "person_id": current},
                )
                raise CycleDetected(current, path)

            if current not in self._referrers:
                raise DanglingReferrer(path[-1], current)

            chain.append(ReferralChainEntry(person_id=current, depth=depth))
            path.append(current)
            current = self._referrers[current]
            depth += 1

        logger.debug(
            "Referral chain resolved",
            extra={"seller_id": seller_id, "chain_length": len(chain)},
        )
        return chain

    def would_create_cycle(self, person_id: int, new_referrer_id: int) -> bool:
        """
        Check whether setting referred_by would close a loop.

        Args:
            person_id: Person whose referrer changes
            new_referrer_id: Proposed referrer

        Returns:
            True if person_id is new_referrer_id or one of its ancestors
        """
        if person_id == new_referrer_id:
            return True

        seen: set[int] = set()
        current: int | None = new_referrer_id
        while current is not None and current not in seen:
            if current == person_id:
                return True
            seen.add(current)
            current = self._referrers.get(current)

        return False

    def descendants_of(self, person_id: int) -> list[int]:
        """
        Get everyone referred (transitively) by a person.

        Returns:
            Descendant IDs, breadth-first, parents before children
        """
        children: dict[int, list[int]] = {}
        for child, parent in self._referrers.items():
            if parent is not None:
                children.setdefault(parent, []).append(child)

        result: list[int] = []
        seen = {person_id}
        queue = sorted(children.get(person_id, []))
        while queue:
            current = queue.pop(0)
            if current in seen:
                continue
            seen.add(current)
            result.append(current)
            queue.extend(sorted(children.get(current, [])))

        return result
