"""Notifier composition helpers."""

from snapsend.notifiers.multiplex import MultiplexNotifier, NotifierEntry

__all__ = ["MultiplexNotifier", "NotifierEntry"]
