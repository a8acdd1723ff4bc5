"""Service modules"""
from .risk_monitor import RiskMonitor

__all__ = ["RiskMonitor"]
