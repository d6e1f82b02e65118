"""Analytics engine — Pro-only growth, health and milestone tracking."""

from reporadar.engines.analytics.aggregator import ActivityLevel, AnalyticsAggregator
from reporadar.engines.analytics.runner import AnalyticsRunner

__all__ = ["ActivityLevel", "AnalyticsAggregator", "AnalyticsRunner"]
