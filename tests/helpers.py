"""Shared test helpers for Tree Timers."""

from datetime import datetime, timedelta

T0 = datetime(2024, 5, 1, 9, 0, 0)


class SignalCollector:
    """Utility to capture pyqtSignal emissions into a list."""

    def __init__(self):
        self.items: list = []

    def slot(self, *args):
        self.items.append(args if len(args) > 1 else args[0] if args else None)

    def __call__(self, *args):
        self.slot(*args)

    def __len__(self):
        return len(self.items)

    def __getitem__(self, idx):
        return self.items[idx]

    @property
    def last(self):
        return self.items[-1] if self.items else None

    def clear(self):
        self.items.clear()


class NotificationCollector:
    """Stands in for ``notify(title, body)``."""

    def __init__(self):
        self.sent: list[tuple[str, str]] = []

    def __call__(self, title: str, body: str) -> None:
        self.sent.append((title, body))


class FakeClock:
    """Manually advanced replacement for ``datetime.now``."""

    def __init__(self, start: datetime = T0):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current += timedelta(**kwargs)
        return self.current


def ms(value: int) -> timedelta:
    return timedelta(milliseconds=value)
