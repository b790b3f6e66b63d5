"""Test doubles shared by the registry tests."""

from __future__ import annotations

from typing import Any


class CountingHandle:
    """Loadable handle that counts how many times it was evaluated."""

    def __init__(self, factory=object):
        self.factory = factory
        self.loads = 0

    def load(self) -> Any:
        self.loads += 1
        return self.factory()


class FailingHandle:
    def __init__(self, error: Exception):
        self.error = error
        self.loads = 0

    def load(self) -> Any:
        self.loads += 1
        raise self.error


class RecordingService:
    """Service with both hooks that appends `<phase>:<name>` to a shared event list."""

    def __init__(self, name: str, events: list[str]):
        self.name = name
        self.events = events
        self.initialized = False

    def init(self) -> None:
        self.events.append(f"init:{self.name}")
        self.initialized = True

    def start(self) -> None:
        self.events.append(f"start:{self.name}")


class RecordingLogger:
    """Stand-in for the module logger that keeps `(level, event)` pairs."""

    def __init__(self):
        self.records: list[tuple[str, str]] = []

    def __getattr__(self, level):
        def log(event, *args, **kwargs):
            self.records.append((level, event))

        return log

    def events(self, level: str) -> list[str]:
        return [event for record_level, event in self.records if record_level == level]
