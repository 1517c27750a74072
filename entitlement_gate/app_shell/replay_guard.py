from datetime import datetime, timedelta
from threading import Lock

from entitlement_gate.adapters.clock import SystemClock
from entitlement_gate.core.ports.clock import ClockPort
from entitlement_gate.rules.models import ReplayRules


class ReplayGuard:
    """
    Remembers webhook-ids of deliveries that were fully processed.

    Ids are recorded only after a successful apply, so a delivery that failed
    on storage is still processed when the provider retries it.
    """

    def __init__(
        self,
        rules: ReplayRules,
        time_port: ClockPort | None = None,
    ):
        self.rules = rules
        self._time = time_port if time_port is not None else SystemClock()
        self._seen: dict[str, datetime] = {}
        self._lock = Lock()

    @property
    def enabled(self) -> bool:
        return self.rules.enabled

    def _cleanup(self) -> None:
        cutoff = self._time.now_utc() - timedelta(seconds=self.rules.dedupe_window_seconds)
        expired = [key for key, seen_at in self._seen.items() if seen_at <= cutoff]
        for key in expired:
            del self._seen[key]

    def seen(self, webhook_id: str) -> bool:
        """True if this id was processed within the dedupe window."""
        if not self.enabled or not webhook_id:
            return False

        with self._lock:
            self._cleanup()
            return webhook_id in self._seen

    def record(self, webhook_id: str) -> None:
        if not self.enabled or not webhook_id:
            return

        with self._lock:
            self._cleanup()
            self._seen[webhook_id] = self._time.now_utc()

    def __len__(self) -> int:
        with self._lock:
            self._cleanup()
            return len(self._seen)
