# storefront/utils/clock.py
import threading
from datetime import datetime, timezone


class SystemClock:
    """
    Wall clock used by the lifecycle engine and checkout.
    sleep() waits on the driver's stop event, so a cancelled driver wakes up at once.
    """

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def sleep(self, seconds: float, stop_event: threading.Event) -> bool:
        """Returns False when the wait was interrupted by stop_event."""
        return not stop_event.wait(seconds)
