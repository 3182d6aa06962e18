"""Store clock with time manipulation for testing expiry.

Responsibilities:
- Provide the current time the ledger engine reads
- Advance or set time (days, hours, minutes)
- Run an expiry sweep over all users after time moves
"""

import threading
import time
from typing import TYPE_CHECKING, Optional

from credit_store.state_logger import get_logger
from credit_store.utils.time_utils import duration_to_millis

if TYPE_CHECKING:
    from credit_store.services.ledger_engine import CreditLedgerEngine

logger = get_logger(__name__)


def _real_time_millis() -> int:
    return int(time.time() * 1000)


class TimeController:
    """Clock for the store, real time plus an offset.

    Args:
        start_time_millis: initial time, defaults to real current time
        frozen: if True the clock only moves when advanced or set
    """

    def __init__(self, start_time_millis: Optional[int] = None, frozen: bool = False) -> None:
        # thread safety lock
        self._lock = threading.RLock()
        self._frozen = frozen
        self._engine: Optional["CreditLedgerEngine"] = None

        real_now = _real_time_millis()
        self._frozen_time_millis = start_time_millis if start_time_millis is not None else real_now
        self._time_offset_millis = self._frozen_time_millis - real_now

        logger.info(
            "time_controller_initialized",
            current_time_millis=self.get_current_time_millis(),
            frozen=frozen,
        )

    def attach_engine(self, engine: "CreditLedgerEngine") -> None:
        """Attach the ledger engine swept whenever time moves forward."""
        with self._lock:
            self._engine = engine

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    @property
    def offset_millis(self) -> int:
        with self._lock:
            return self._time_offset_millis

    def get_current_time_millis(self) -> int:
        """Get the current store time in milliseconds.

        Returns:
            Current time as Unix timestamp in milliseconds.
        """
        with self._lock:
            if self._frozen:
                return self._frozen_time_millis
            return _real_time_millis() + self._time_offset_millis

    def advance_time(self, days: int = 0, hours: int = 0, minutes: int = 0) -> dict:
        """Advance time (days, hours, minutes) and sweep expired records.

        Args:
            days: number of days to advance
            hours: number of hours to advance
            minutes: number of minutes to advance

        Returns:
            Dictionary with:
                - old_time_millis: time before advancement
                - new_time_millis: time after advancement
                - time_advanced_millis: amount of time advanced
                - lots_expired: IDs of credit lots expired by the sweep
                - grants_renewed: IDs of grants auto-renewed by the sweep
                - grants_expired: IDs of grants expired by the sweep
        Raises:
            ValueError: if time values are negative
        """
        if days < 0 or hours < 0 or minutes < 0:
            raise ValueError("Cannot advance time backwards, negative values are not allowed")

        millis_to_advance = duration_to_millis(days=days, hours=hours, minutes=minutes)

        with self._lock:
            old_time = self.get_current_time_millis()
            self._shift(millis_to_advance)
            new_time = self.get_current_time_millis()

        if millis_to_advance:
            logger.info(
                "time_advanced",
                old_time_millis=old_time,
                new_time_millis=new_time,
                days=days,
                hours=hours,
                minutes=minutes,
            )

        result = {
            "old_time_millis": old_time,
            "new_time_millis": new_time,
            "time_advanced_millis": millis_to_advance,
        }
        result.update(self._sweep() if millis_to_advance else self._empty_sweep())
        return result

    def set_time(self, timestamp_millis: int) -> dict:
        """Set the clock to a specific timestamp and sweep expired records.

        Args:
            timestamp_millis: Unix timestamp in milliseconds to set

        Returns:
            Dictionary with old_time_millis, new_time_millis and sweep results

        Raises:
            ValueError: If timestamp is before the current time
        """
        with self._lock:
            old_time = self.get_current_time_millis()
            if timestamp_millis < old_time:
                raise ValueError(
                    f"Cannot set time backwards, current: {old_time}, requested: {timestamp_millis}"
                )
            self._shift(timestamp_millis - old_time)

        logger.info(
            "time_set",
            old_time_millis=old_time,
            new_time_millis=timestamp_millis,
            time_jump=timestamp_millis - old_time,
        )

        result = {
            "old_time_millis": old_time,
            "new_time_millis": timestamp_millis,
            "time_advanced_millis": timestamp_millis - old_time,
        }
        result.update(self._sweep())
        return result

    def reset_time(self) -> dict:
        """Reset the clock back to real current time."""
        with self._lock:
            old_time = self.get_current_time_millis()
            real_now = _real_time_millis()
            self._frozen_time_millis = real_now
            self._time_offset_millis = 0

        logger.info("time_reset", old_time_millis=old_time, new_time_millis=real_now)

        return {
            "old_time_millis": old_time,
            "new_time_millis": real_now,
        }

    def _shift(self, millis: int) -> None:
        self._frozen_time_millis += millis
        self._time_offset_millis += millis

    def _empty_sweep(self) -> dict:
        return {"lots_expired": [], "grants_renewed": [], "grants_expired": []}

    def _sweep(self) -> dict:
        """Run an expiry sweep over every user if an engine is attached."""
        if self._engine is None:
            return self._empty_sweep()

        results = self._engine.sweep_all()
        summary = {
            "lots_expired": [lot_id for r in results for lot_id in r.expired_lot_ids],
            "grants_renewed": [grant_id for r in results for grant_id in r.renewed_grant_ids],
            "grants_expired": [grant_id for r in results for grant_id in r.expired_grant_ids],
        }
        if any(summary.values()):
            logger.info(
                "time_sweep_processed",
                lots_expired=len(summary["lots_expired"]),
                grants_renewed=len(summary["grants_renewed"]),
                grants_expired=len(summary["grants_expired"]),
            )
        return summary
