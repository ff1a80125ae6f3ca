"""Service modules"""
from .monitor import HealthMonitor, PositionStatus
from .simulation import ScenarioError, ScenarioRunner, build_engine

__all__ = ["HealthMonitor", "PositionStatus", "ScenarioError", "ScenarioRunner", "build_engine"]
