"""CheckLedger - ordered, append-only store of checks for one scenario run.

The ledger keeps the first check appended for each id and, when finalized
against the scenario's expected ids, fills every gap with a synthesized
FAILURE so that an incomplete run still yields a complete report.
"""

import logging
import threading
from collections.abc import Iterable, Iterator
from dataclasses import replace

from ..types import Check, CheckStatus

logger = logging.getLogger(__name__)

MISSING_CHECK_DESCRIPTION = "Expected check not produced - likely untriggered code path"


def missing_check(check_id: str) -> Check:
    """Create the FAILURE check standing in for an expected check that never ran."""
    return Check(
        id=check_id,
        name=f"Expected Check Missing: {check_id}",
        description=MISSING_CHECK_DESCRIPTION,
        status=CheckStatus.FAILURE,
        details={"reason": "not observed"},
    )


class CheckLedger:
    """Append-only, order-preserving collection of checks."""

    def __init__(self) -> None:
        self._checks: list[Check] = []
        self._index: dict[str, Check] = {}
        self._lock = threading.Lock()

    def append(self, check: Check) -> bool:
        """Append a check unless one with the same id is already recorded.

        A timestamp older than the last recorded one is clamped forward on a
        copy of the check so timestamps stay non-decreasing.

        Args:
            check: Check to record

        Returns:
            True if the check was recorded, False if its id was a duplicate
        """
        with self._lock:
            if check.id in self._index:
                logger.debug(f"Ignoring duplicate check: id={check.id} status={check.status.value}")
                return False
            if self._checks and check.timestamp < self._checks[-1].timestamp:
                check = replace(check, timestamp=self._checks[-1].timestamp)
            self._checks.append(check)
            self._index[check.id] = check
            return True

    def extend(self, checks: Iterable[Check]) -> None:
        for check in checks:
            self.append(check)

    def finalize(self, expected_ids: Iterable[str]) -> list[Check]:
        """Reconcile observed checks against the expected check ids.

        Every expected id without an observation gets a synthesized FAILURE,
        appended after all observed checks in the declared order. Calling
        finalize again adds nothing new.

        Args:
            expected_ids: Ordered ids the scenario declares as its output contract

        Returns:
            Snapshot of the complete ledger
        """
        for check_id in expected_ids:
            if check_id not in self._index:
                logger.debug(f"Synthesizing failure for missing check: {check_id}")
                self.append(missing_check(check_id))
        return self.to_list()

    def get(self, check_id: str) -> Check | None:
        return self._index.get(check_id)

    def to_list(self) -> list[Check]:
        with self._lock:
            return list(self._checks)

    def __contains__(self, check_id: object) -> bool:
        return check_id in self._index

    def __iter__(self) -> Iterator[Check]:
        return iter(self.to_list())

    def __len__(self) -> int:
        return len(self._checks)
