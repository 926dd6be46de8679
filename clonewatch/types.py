"""Shared type definitions and utilities for clonewatch."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

# Reusable decorator for immutable, slot-based dataclasses.
frozen_slots = dataclass(frozen=True, slots=True)

# Callback receiving human-readable progress messages during long scans.
ProgressFn = Callable[[str], None]
