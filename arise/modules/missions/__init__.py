"""Missions: recurring tasks, streaks and completion rewards."""

from arise.modules.missions.service import MissionService

__all__ = ["MissionService"]
