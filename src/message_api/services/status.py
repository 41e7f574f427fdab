"""Process-wide record of which backing services are reachable.

Services mark a dependency down when a call to it fails and up again on the
next success. The record is only surfaced through ``GET /status``; it never
changes how an individual request is answered.
"""
from __future__ import annotations

import logging
from threading import Lock
from typing import Any

logger = logging.getLogger("message_api.status")

DB = "db"
POLICY = "policy"
PROFILES = "profiles"


class DependencyStatusRegistry:
    def __init__(self) -> None:
        self._lock = Lock()
        self._up: list[str] = []
        self._down: list[str] = []

    def mark_up(self, name: str) -> None:
        with self._lock:
            if name in self._down:
                self._down.remove(name)
                logger.info("status.dependency.up", extra={"dependency": name})
            if name not in self._up:
                self._up.append(name)

    def mark_down(self, name: str) -> None:
        with self._lock:
            if name in self._up:
                self._up.remove(name)
            if name not in self._down:
                self._down.append(name)
                logger.warning("status.dependency.down", extra={"dependency": name})

    def is_down(self, name: str) -> bool:
        with self._lock:
            return name in self._down

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            running = not self._down
            return {
                "running": running,
                "statuscode": 200 if running else 500,
                "deps": {"up": sorted(self._up), "down": sorted(self._down)},
            }

    def reset(self) -> None:
        with self._lock:
            self._up.clear()
            self._down.clear()


dependency_status = DependencyStatusRegistry()


def get_status_registry() -> DependencyStatusRegistry:
    return dependency_status


__all__ = [
    "DB",
    "POLICY",
    "PROFILES",
    "DependencyStatusRegistry",
    "dependency_status",
    "get_status_registry",
]
