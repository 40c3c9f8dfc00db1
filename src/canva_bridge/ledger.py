from collections import deque
from dataclasses import asdict, dataclass
from datetime import datetime, timezone

import structlog

logger = structlog.get_logger()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class LedgerEntry:
    type: str
    amount: int
    balance_after: int
    job_id: str | None
    created_at: str

    def to_dict(self) -> dict:
        return asdict(self)


class CreditLedger:
    """Process-wide credit balance with a bounded history of changes."""

    def __init__(self, initial: int = 10, bundle_size: int = 10, history: int = 100) -> None:
        self._balance = initial
        self.bundle_size = bundle_size
        self._entries: deque[LedgerEntry] = deque(maxlen=max(history, 1))

    @property
    def balance(self) -> int:
        return self._balance

    def _add(self, type_: str, amount: int, job_id: str | None = None) -> int:
        self._balance += amount
        self._entries.append(
            LedgerEntry(
                type=type_,
                amount=amount,
                balance_after=self._balance,
                job_id=job_id,
                created_at=_now(),
            )
        )
        return self._balance

    def purchase(self) -> int:
        balance = self._add("purchase", self.bundle_size)
        logger.info("credits.purchased", amount=self.bundle_size, balance=balance)
        return balance

    def charge(self, job_id: str) -> int:
        balance = self._add("charge", -1, job_id=job_id)
        logger.info("credits.charged", job_id=job_id, balance=balance)
        return balance

    def recent(self, limit: int = 20) -> list[LedgerEntry]:
        if limit <= 0:
            return []
        return list(reversed(self._entries))[:limit]
