"""Daily claim and conversion engine."""

from rewards.points.service import DAILY_CLAIM_LIMIT, DAILY_CLAIM_POINTS, PointsService, points_service

__all__ = ["DAILY_CLAIM_LIMIT", "DAILY_CLAIM_POINTS", "PointsService", "points_service"]
