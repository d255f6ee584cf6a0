"""Case runner."""

from .case import FrozenFlowCase
from .time import TimeControl

__all__ = ["FrozenFlowCase", "TimeControl"]
