"""
Teacup Common module.

This module contains the domain models and the reporter interface shared
by the report components (persistence, admin CLI).

The common module has no dependencies on other teacup_* modules, making it
a pure domain layer that can be imported by any component.
"""

from .models import Level, LogRecord, Node, Result, Status
from .reporter import Reporter

__all__ = ["Level", "LogRecord", "Node", "Reporter", "Result", "Status"]
