"""
Route matcher for Navigation Service.
"""

from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional, Sequence, Union

from shared.logging import get_logger
from shared.metrics import MetricsCollector
from shared.tracing import trace_operation
from ..catalog.models import MenuLink, ResolvedFeature
from ..catalog.slugs import normalize_page_slug, page_slug_for_href


UNDER_DEVELOPMENT_MESSAGE = "This page is under development"


@dataclass(frozen=True)
class Found:
    """The requested page maps to a link of a resolved feature."""
    feature: ResolvedFeature
    link: MenuLink
    page_slug: str

    result = "found"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "result": self.result,
            "feature": self.feature.to_dict(),
            "link": self.link.to_dict(),
            "page_slug": self.page_slug
        }


@dataclass(frozen=True)
class FeatureNotFound:
    """No resolved feature has the requested slug."""
    feature_slug: str
    page_slug: str

    result = "feature_not_found"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "result": self.result,
            "feature_slug": self.feature_slug,
            "page_slug": self.page_slug
        }


@dataclass(frozen=True)
class PageNotImplemented:
    """The feature matched but none of its links ends in the page slug."""
    feature: ResolvedFeature
    page_slug: str
    available_links: List[MenuLink] = field(default_factory=list)

    result = "page_not_implemented"

    @property
    def attempted_url(self) -> str:
        return f"/school/{self.feature.feature.slug}/{self.page_slug}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "result": self.result,
            "feature": self.feature.to_dict(),
            "page_slug": self.page_slug,
            "attempted_url": self.attempted_url,
            "message": UNDER_DEVELOPMENT_MESSAGE,
            "available_links": [link.to_dict() for link in self.available_links]
        }


MatchResult = Union[Found, FeatureNotFound, PageNotImplemented]


class RouteMatcher:
    """Maps ``(feature_slug, page_slug)`` onto a resolved menu.

    Slugs compare case-sensitively against the feature's stored slug and
    the trailing path segment of each effective link's href. A missing or
    empty page slug means ``"dashboard"``. When several links share a
    trailing segment the first one in display order wins.
    """

    def __init__(self, metrics: Optional[MetricsCollector] = None):
        self.metrics = metrics
        self.logger = get_logger("navigation.route_matcher")

    def match(self, resolved: Sequence[ResolvedFeature], feature_slug: str,
              page_slug: Optional[str] = None) -> MatchResult:
        page_slug = normalize_page_slug(page_slug)

        with trace_operation("navigation.match", feature_slug=feature_slug, page_slug=page_slug):
            result = self._match(resolved, feature_slug, page_slug)

        if self.metrics:
            self.metrics.increment_counter("route_matches_total", result=result.result)
        self.logger.debug(
            "Route matched",
            feature_slug=feature_slug,
            page_slug=page_slug,
            result=result.result
        )
        return result

    def _match(self, resolved: Sequence[ResolvedFeature], feature_slug: str,
               page_slug: str) -> MatchResult:
        feature = next((r for r in resolved if r.feature.slug == feature_slug), None)
        if feature is None:
            return FeatureNotFound(feature_slug=feature_slug, page_slug=page_slug)

        for link in feature.effective_menu_links:
            if page_slug_for_href(link.href) == page_slug:
                return Found(feature=feature, link=link, page_slug=page_slug)

        return PageNotImplemented(
            feature=feature,
            page_slug=page_slug,
            available_links=list(feature.effective_menu_links)
        )
