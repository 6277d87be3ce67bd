"""Thread-safe per-category gauge state with change notifications.

Each category owns an immutable ``GaugeData`` snapshot and a lock. Writers
for the same category are serialized; different categories never contend.
Readers get whichever snapshot is current, so they see a history either
before or after an update, never half-truncated. Subscribers of a category
are notified in the order its updates were committed.
"""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Mapping

from pulse import gauges
from pulse.gauges import BUILTIN_PROFILES, CategoryProfile, GaugeCategory, GaugeData, category_key
from pulse.metrics import (
    gauge_confidence,
    gauge_updates_dropped_total,
    gauge_updates_total,
    gauge_value,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GaugeUpdate:
    """Message published after every accepted observation."""
    category: str
    gauge: GaugeData

    def to_dict(self) -> dict[str, Any]:
        return {"category": self.category, "gauge": self.gauge.to_dict()}


Subscriber = Callable[[GaugeUpdate], None]


class _Slot:
    __slots__ = ("lock", "gauge")

    def __init__(self, gauge: GaugeData):
        # Re-entrant so a subscriber may write back into the category it watches.
        self.lock = threading.RLock()
        self.gauge = gauge


class GaugeStore:
    """Owns one gauge per category; the only way to mutate gauge state."""

    def __init__(self, profiles: Mapping[str, CategoryProfile] | None = None,
                 clock: Callable[[], datetime] | None = None):
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._profiles: dict[str, CategoryProfile] = dict(BUILTIN_PROFILES if profiles is None else profiles)
        self._registry_lock = threading.Lock()
        self._subscribers_lock = threading.Lock()
        self._subscribers: list[tuple[str | None, Subscriber]] = []
        now = self._clock()
        self._slots: dict[str, _Slot] = {
            key: _Slot(gauges.default_gauge(key, self._profiles, now)) for key in self._profiles
        }
        logger.info("GaugeStore initialized with %d categories: %s",
                    len(self._slots), ", ".join(self._slots))

    # ── categories ──

    @property
    def categories(self) -> list[str]:
        return list(self._slots)

    def register_category(self, name: str, value_range: tuple[float, float],
                          initial_value: float | None = None,
                          color_scheme: dict[str, str] | None = None) -> GaugeData:
        """Add an open-ended category. Raises ValueError if it already exists."""
        key = category_key(name)
        lo, hi = value_range
        kwargs: dict[str, Any] = {}
        if color_scheme is not None:
            kwargs["color_scheme"] = dict(color_scheme)
        profile = CategoryProfile(
            key, (float(lo), float(hi)),
            (lo + hi) / 2.0 if initial_value is None else float(initial_value),
            **kwargs,
        )
        with self._registry_lock:
            if key in self._slots:
                raise ValueError(f"gauge category {key!r} is already registered")
            self._profiles[key] = profile
            slot = _Slot(gauges.default_gauge(key, self._profiles, self._clock()))
            self._slots[key] = slot
        logger.info("Registered gauge category %s range=%s", key, profile.value_range)
        return slot.gauge

    # ── reads ──

    def get_gauge_data(self, category: GaugeCategory | str) -> GaugeData:
        """Current snapshot, or the generic default for an unknown category."""
        key = category_key(category)
        slot = self._slots.get(key)
        if slot is None:
            return gauges.default_gauge(key, self._profiles, self._clock())
        return slot.gauge

    def get_all_gauges(self) -> dict[str, GaugeData]:
        return {key: slot.gauge for key, slot in list(self._slots.items())}

    # ── writes ──

    def update_value(self, category: GaugeCategory | str, value: Any,
                     metadata: Mapping[str, Any] | None = None) -> None:
        """Ingest one observation. Never raises; bad input is dropped and logged."""
        key = category_key(category)
        slot = self._slots.get(key)
        if slot is None:
            gauge_updates_dropped_total.labels(reason="unknown_category").inc()
            logger.warning("Unknown gauge category: %s", key)
            return

        try:
            raw = float(value)
        except OverflowError:
            # integers beyond float range clamp like ±inf
            raw = math.inf if value > 0 else -math.inf
        except (TypeError, ValueError):
            gauge_updates_dropped_total.labels(reason="non_numeric").inc()
            logger.warning("Dropping non-numeric value for %s: %r", key, value)
            return
        if math.isnan(raw):
            gauge_updates_dropped_total.labels(reason="nan").inc()
            logger.warning("Dropping NaN value for %s", key)
            return

        # Metrics and notifications stay under the slot lock so subscribers
        # see updates of one category in commit order.
        with slot.lock:
            try:
                updated = gauges.apply_update(slot.gauge, raw, metadata, self._clock())
            except Exception:
                gauge_updates_dropped_total.labels(reason="error").inc()
                logger.error("Gauge update failed for %s", key, exc_info=True)
                return
            slot.gauge = updated

            gauge_updates_total.labels(category=key).inc()
            gauge_value.labels(category=key).set(updated.current_value)
            gauge_confidence.labels(category=key).set(updated.confidence)
            logger.debug("Gauge %s updated: value=%.4f smoothed=%.4f trend=%s conf=%.2f",
                         key, updated.current_value, updated.smoothed_value,
                         updated.trend_direction.value, updated.confidence)
            self._publish(GaugeUpdate(key, updated))

    def recalculate_baselines(self, category: GaugeCategory | str) -> GaugeData | None:
        """Refresh the 7d/30d baselines of one category from its history."""
        key = category_key(category)
        slot = self._slots.get(key)
        if slot is None:
            logger.warning("Cannot recalculate baselines for unknown category %s", key)
            return None
        with slot.lock:
            slot.gauge = gauges.recalculate_baselines(slot.gauge, self._clock())
            return slot.gauge

    def recalculate_all_baselines(self) -> int:
        """Refresh baselines of every category; returns how many were refreshed."""
        refreshed = 0
        for key in list(self._slots):
            if self.recalculate_baselines(key) is not None:
                refreshed += 1
        return refreshed

    # ── notifications ──

    def subscribe(self, callback: Subscriber,
                  category: GaugeCategory | str | None = None) -> Callable[[], None]:
        """Call ``callback`` after each update (optionally of one category).

        Callbacks run while the category lock is held, in commit order, so
        they should be quick. Returns a function that removes the subscription.
        """
        entry = (None if category is None else category_key(category), callback)
        with self._subscribers_lock:
            self._subscribers.append(entry)

        def unsubscribe() -> None:
            with self._subscribers_lock:
                if entry in self._subscribers:
                    self._subscribers.remove(entry)

        return unsubscribe

    def _publish(self, update: GaugeUpdate) -> None:
        with self._subscribers_lock:
            targets = [cb for cat, cb in self._subscribers if cat is None or cat == update.category]
        for callback in targets:
            try:
                callback(update)
            except Exception:
                logger.warning("Gauge subscriber failed for %s", update.category, exc_info=True)
