"""
Per-repository event history and the global broadcast queue.
"""
from .broadcast import BroadcastQueue
from .event_log import EventLog
from .subscriber import BroadcastSubscriber

__all__ = ["EventLog", "BroadcastQueue", "BroadcastSubscriber"]
