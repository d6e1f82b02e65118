"""Data-access objects — one per table."""

from reporadar.dao.analytics_dao import AnalyticsDAO
from reporadar.dao.milestone_dao import MilestoneDAO
from reporadar.dao.repository_dao import RepositoryDAO

__all__ = ["AnalyticsDAO", "MilestoneDAO", "RepositoryDAO"]
