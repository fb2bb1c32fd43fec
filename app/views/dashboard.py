"""Pydantic schemas for dashboard aggregates."""

from __future__ import annotations

from pydantic import BaseModel


class DashboardStatsResponse(BaseModel):
    schools: int
    teachers: int
    users: int
    lectures: int
    reports: int
    analyses_processing: int
    analyses_failed: int


__all__ = ["DashboardStatsResponse"]
