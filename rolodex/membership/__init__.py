"""Workspace membership and access control.

Registry → Ledger/Gate/Coordinator, all bound to one request session and
given the acting principal explicitly on every call.
"""

from rolodex.membership.coordinator import InvitationCoordinator, TransferResult
from rolodex.membership.gate import AccessGate, LeaveDecision, LeaveReason, can_remove
from rolodex.membership.ledger import MembershipLedger
from rolodex.membership.registry import ScopeChangeListener, WorkspaceRegistry

__all__ = [
    "AccessGate",
    "InvitationCoordinator",
    "LeaveDecision",
    "LeaveReason",
    "MembershipLedger",
    "ScopeChangeListener",
    "TransferResult",
    "WorkspaceRegistry",
    "can_remove",
]
