"""
Integration layer: imperative shells around the functional core.
"""

from .clock import ManualClock, system_clock
from .config import EngineConfig
from .event_log import EventLog
from .ledger import StakingLedger
from .router import DEXRouter

__all__ = [
    "ManualClock",
    "system_clock",
    "EngineConfig",
    "EventLog",
    "StakingLedger",
    "DEXRouter",
]
