"""A subscriber session."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Session:
    """An active session, identified by the subscriber's IMSI."""

    imsi: str