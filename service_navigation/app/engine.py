"""
Navigation engine: access gate, then resolver, then route matcher.
"""

from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional

from shared.logging import get_logger
from .catalog.models import ResolvedFeature
from .resolution.gate import AccessGate, GateDecision
from .resolution.resolver import MenuResolver
from .resolution.matcher import RouteMatcher, MatchResult


@dataclass(frozen=True)
class MenuOutcome:
    """A gated (empty) or resolved menu."""
    decision: GateDecision
    features: List[ResolvedFeature] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "result": self.decision.state.value,
            "reason": self.decision.reason,
            "tenant_id": self.decision.tenant_id,
            "features": [f.to_dict() for f in self.features]
        }


@dataclass(frozen=True)
class RouteOutcome:
    """A gated request, or the route match of a resolved one."""
    decision: GateDecision
    match: Optional[MatchResult] = None

    def to_dict(self) -> Dict[str, Any]:
        if self.match is None:
            return {"result": self.decision.state.value, "reason": self.decision.reason}
        return self.match.to_dict()


class NavigationEngine:
    """Runs one request through the gate, resolver and matcher.

    Takes tenant id and role as explicit arguments. The gate runs before
    any store access, and a gated request never reaches the resolver.
    """

    def __init__(self, gate: AccessGate, resolver: MenuResolver, matcher: RouteMatcher):
        self.gate = gate
        self.resolver = resolver
        self.matcher = matcher
        self.logger = get_logger("navigation.engine")

    async def menu_for(self, role: Optional[str], tenant_id: Optional[str]) -> MenuOutcome:
        decision = self.gate.evaluate(role, tenant_id)
        if not decision.allowed:
            return MenuOutcome(decision=decision)

        features = await self.resolver.resolve(decision.tenant_id)
        return MenuOutcome(decision=decision, features=features)

    async def route(self, role: Optional[str], tenant_id: Optional[str],
                    feature_slug: str, page_slug: Optional[str] = None) -> RouteOutcome:
        outcome = await self.menu_for(role, tenant_id)
        if not outcome.decision.allowed:
            return RouteOutcome(decision=outcome.decision)

        return RouteOutcome(
            decision=outcome.decision,
            match=self.matcher.match(outcome.features, feature_slug, page_slug)
        )
