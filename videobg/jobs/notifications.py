"""Choose how completion of a job will be detected."""

from dataclasses import dataclass
from typing import Optional

from videobg.jobs.models import NotificationMode

WEBHOOK_PATH = "/api/webhook"


@dataclass(frozen=True)
class NotificationPlan:
    mode: NotificationMode
    callback_url: Optional[str] = None


class NotificationRouter:
    """Decides push vs. pull from the process-wide callback base address.

    The base address is injected once; the plan returned by ``route`` is
    copied into each job at submission, so clearing the address later
    does not affect jobs already in flight.
    """

    def __init__(self, callback_base: Optional[str] = None):
        base = (callback_base or "").strip()
        self._callback_base = base.rstrip("/") or None

    @property
    def callback_base(self) -> Optional[str]:
        return self._callback_base

    def route(self) -> NotificationPlan:
        if self._callback_base:
            return NotificationPlan(
                mode=NotificationMode.PUSH,
                callback_url=self._callback_base + WEBHOOK_PATH,
            )
        return NotificationPlan(mode=NotificationMode.PULL)
