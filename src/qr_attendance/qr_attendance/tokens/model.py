from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime

from ..core.enums import ReusePolicy


@dataclass(frozen=True)
class ScanToken:
    """A scan token bound to one event.

    Tokens are never deleted; revocation and single-use redemption only flip
    ``active`` to False. ``revoked`` is sticky: nothing re-activates a revoked
    token. ``scan_count`` counts successful redemptions.
    """

    token: str
    event_id: str
    event_name: str
    issued_at: datetime
    expires_at: datetime
    reuse_policy: ReusePolicy
    active: bool = True
    scan_count: int = 0
    revoked: bool = False

    @property
    def single_use(self) -> bool:
        return self.reuse_policy == ReusePolicy.SINGLE_USE

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    def same_state(self, other: ScanToken) -> bool:
        """Compare the mutable fields, the ones compare-and-swap checks."""
        return (self.active, self.scan_count, self.revoked) == (other.active, other.scan_count, other.revoked)

    def redeemed(self) -> ScanToken:
        """State after one more successful scan."""
        return replace(
            self,
            scan_count=self.scan_count + 1,
            active=self.active and not self.single_use,
        )

    def released(self) -> ScanToken:
        """Undo one ``redeemed()`` whose attendance write did not go through."""
        active = self.active
        if self.single_use and not self.revoked:
            active = True
        return replace(self, scan_count=max(0, self.scan_count - 1), active=active)

    def as_revoked(self) -> ScanToken:
        return replace(self, active=False, revoked=True)
