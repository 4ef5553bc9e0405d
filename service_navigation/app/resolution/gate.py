"""
Access gate for Navigation Service.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Union

from shared.logging import get_logger
from shared.metrics import MetricsCollector


class Role(str, Enum):
    """Every role a session can carry."""
    SUPERADMIN = "superadmin"
    SCHOOL_ADMIN = "school_admin"
    BRANCH_ADMIN = "branch_admin"
    TEACHER = "teacher"
    STUDENT = "student"
    PARENT = "parent"


class MenuAudience(str, Enum):
    """Menu namespaces. Platform and tenant-staff menus never merge."""
    PLATFORM = "platform"
    TENANT_STAFF = "tenant_staff"
    END_USER = "end_user"


ROLE_AUDIENCE: Dict[Role, MenuAudience] = {
    Role.SUPERADMIN: MenuAudience.PLATFORM,
    Role.SCHOOL_ADMIN: MenuAudience.TENANT_STAFF,
    Role.TEACHER: MenuAudience.TENANT_STAFF,
    # Branch admins get no tenant feature menu
    Role.BRANCH_ADMIN: MenuAudience.END_USER,
    Role.STUDENT: MenuAudience.END_USER,
    Role.PARENT: MenuAudience.END_USER,
}

_unclassified = set(Role) - set(ROLE_AUDIENCE)
if _unclassified:
    raise RuntimeError(
        f"Roles without a menu audience: {', '.join(sorted(r.value for r in _unclassified))}"
    )

STAFF_ROLES = frozenset(
    role for role, audience in ROLE_AUDIENCE.items() if audience is MenuAudience.TENANT_STAFF
)


def parse_role(value: Union[Role, str, None]) -> Optional[Role]:
    """Map a raw role value to a Role, or None when missing or unknown."""
    if isinstance(value, Role):
        return value
    if not value:
        return None
    try:
        return Role(value)
    except ValueError:
        return None


def can_view_menu(role: Union[Role, str, None]) -> bool:
    """Return True only for tenant staff roles."""
    return parse_role(role) in STAFF_ROLES


class GateState(str, Enum):
    """Terminal states of a request."""
    GATED = "gated"
    RESOLVED = "resolved"


@dataclass(frozen=True)
class GateDecision:
    """Outcome of the access gate for one request."""
    state: GateState
    role: Optional[Role] = None
    tenant_id: Optional[str] = None
    reason: Optional[str] = None

    @property
    def allowed(self) -> bool:
        return self.state is GateState.RESOLVED


class AccessGate:
    """Decides whether a caller's menu may be resolved at all.

    The decision uses only the role and tenant id already carried by the
    session, so it never touches a store.
    """

    def __init__(self, metrics: Optional[MetricsCollector] = None):
        self.metrics = metrics
        self.logger = get_logger("navigation.access_gate")

    def evaluate(self, role: Union[Role, str, None], tenant_id: Optional[str]) -> GateDecision:
        parsed = parse_role(role)

        if parsed is None:
            decision = GateDecision(GateState.GATED, tenant_id=tenant_id, reason="unknown_role")
            self.logger.warning("Menu gated for unknown role", role=str(role))
        elif parsed not in STAFF_ROLES:
            decision = GateDecision(
                GateState.GATED,
                role=parsed,
                tenant_id=tenant_id,
                reason=f"{ROLE_AUDIENCE[parsed].value}_audience"
            )
        elif not tenant_id:
            decision = GateDecision(GateState.GATED, role=parsed, reason="no_tenant")
            self.logger.warning("Staff session without tenant, menu gated", role=parsed.value)
        else:
            decision = GateDecision(GateState.RESOLVED, role=parsed, tenant_id=tenant_id)

        if self.metrics:
            self.metrics.increment_counter("gate_decisions_total", decision=decision.state.value)

        self.logger.debug(
            "Gate decision",
            role=parsed.value if parsed else None,
            state=decision.state.value,
            reason=decision.reason
        )
        return decision
