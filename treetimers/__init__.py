"""Tree Timers: nested countdown timers that share one time budget."""

__version__ = "0.2.0"
