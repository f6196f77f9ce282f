"""
Persistence boundary for confirmed matches.

The matching core never stores anything itself; callers inject a
``MatchRepository`` implementation when they want results kept.
"""

from abc import ABC, abstractmethod
from typing import Iterable, Optional
import logging

from ..models.reconciliation import MatchStatus, ReconciliationMatch
from ..utils.exceptions import DuplicateClaimError, MatchStateError

logger = logging.getLogger(__name__)


class MatchRepository(ABC):
    """Abstract store of reconciliation matches."""

    @abstractmethod
    def save(self, match: ReconciliationMatch) -> ReconciliationMatch:
        """
        Insert or update a match.

        Raises:
            DuplicateClaimError: If another stored match claims one of its transactions
        """
        pass

    @abstractmethod
    def get(self, match_id: str) -> Optional[ReconciliationMatch]:
        pass

    @abstractmethod
    def list_matches(self, status: Optional[MatchStatus] = None) -> list[ReconciliationMatch]:
        pass

    @abstractmethod
    def delete(self, match_id: str) -> bool:
        """
        Remove a match, releasing its transactions.

        Returns:
            True if a match was removed
        """
        pass

    @abstractmethod
    def claimed_internal_ids(self) -> set[str]:
        pass

    @abstractmethod
    def claimed_external_ids(self) -> set[str]:
        pass

    def save_all(self, matches: Iterable[ReconciliationMatch]) -> list[ReconciliationMatch]:
        return [self.save(m) for m in matches]


class InMemoryMatchRepository(MatchRepository):
    """
    Dictionary-backed repository, suitable for tests and single sessions.

    Claims are kept per side: a ledger id and a statement id may be equal
    without referring to the same transaction.
    """

    def __init__(self) -> None:
        self._matches: dict[str, ReconciliationMatch] = {}
        # transaction id -> match id
        self._internal_claims: dict[str, str] = {}
        self._external_claims: dict[str, str] = {}

    def _sides(self, match: ReconciliationMatch) -> list[tuple[dict[str, str], list[str]]]:
        return [
            (self._internal_claims, match.internal_ids),
            (self._external_claims, match.external_ids),
        ]

    def save(self, match: ReconciliationMatch) -> ReconciliationMatch:
        for claims, txn_ids in self._sides(match):
            for txn_id in txn_ids:
                owner = claims.get(txn_id)
                if owner is not None and owner != match.id:
                    raise DuplicateClaimError(
                        f"Transaction {txn_id} already claimed by match {owner}"
                    )

        previous = self._matches.get(match.id)
        if previous is not None:
            self._release(previous)

        self._matches[match.id] = match
        for claims, txn_ids in self._sides(match):
            for txn_id in txn_ids:
                claims[txn_id] = match.id

        logger.debug(f"Saved match {match.id} ({match.status.value})")
        return match

    def get(self, match_id: str) -> Optional[ReconciliationMatch]:
        return self._matches.get(match_id)

    def list_matches(self, status: Optional[MatchStatus] = None) -> list[ReconciliationMatch]:
        if status is None:
            return list(self._matches.values())
        return [m for m in self._matches.values() if m.status is status]

    def delete(self, match_id: str) -> bool:
        match = self._matches.get(match_id)
        if match is None:
            return False
        if match.status is MatchStatus.LOCKED:
            raise MatchStateError(f"Match {match_id} is locked")

        del self._matches[match_id]
        self._release(match)
        return True

    def _release(self, match: ReconciliationMatch) -> None:
        for claims, txn_ids in self._sides(match):
            for txn_id in txn_ids:
                if claims.get(txn_id) == match.id:
                    del claims[txn_id]

    def claimed_internal_ids(self) -> set[str]:
        return set(self._internal_claims)

    def claimed_external_ids(self) -> set[str]:
        return set(self._external_claims)
