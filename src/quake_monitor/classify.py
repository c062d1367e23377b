"""Magnitude tiers: colors, marker sizes, badges and the legend.

Every mapping in this module is driven by the single ``_BREAKPOINTS`` table.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

from quake_monitor.models import EventRecord, Marker


class Tier(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    MINIMAL = "minimal"


@dataclass(frozen=True)
class TierStyle:
    color: str
    badge: str
    severity_label: str
    marker_color: str


# Evaluated top to bottom; first match wins.
_BREAKPOINTS: tuple[tuple[float, Tier], ...] = (
    (6.0, Tier.CRITICAL),
    (5.0, Tier.HIGH),
    (4.0, Tier.MEDIUM),
    (2.5, Tier.LOW),
)

TIER_STYLES: dict[Tier, TierStyle] = {
    Tier.CRITICAL: TierStyle("severe", "destructive", "Major", "#dc2626"),
    Tier.HIGH: TierStyle("strong", "default", "Moderate", "#ea580c"),
    Tier.MEDIUM: TierStyle("moderate", "secondary", "Light", "#f59e0b"),
    Tier.LOW: TierStyle("light", "outline", "Minor", "#14b8a6"),
    Tier.MINIMAL: TierStyle("minor", "outline", "Micro", "#6ee7b7"),
}

MIN_MARKER_SIZE = 4.0
MARKER_SCALE = 3.0


def classify(magnitude: float) -> Tier:
    """Map a magnitude to its tier. Total over all floats, NaN included."""
    for threshold, tier in _BREAKPOINTS:
        if magnitude >= threshold:
            return tier
    return Tier.MINIMAL


def marker_color(magnitude: float) -> str:
    """Hex fill color for a map marker."""
    return TIER_STYLES[classify(magnitude)].marker_color


def marker_size(magnitude: float) -> float:
    """Marker radius in pixels, never below ``MIN_MARKER_SIZE``."""
    if math.isnan(magnitude):
        return MIN_MARKER_SIZE
    return max(MIN_MARKER_SIZE, magnitude * MARKER_SCALE)


def badge_variant(magnitude: float) -> str:
    return TIER_STYLES[classify(magnitude)].badge


def severity_label(magnitude: float) -> str:
    return TIER_STYLES[classify(magnitude)].severity_label


def marker_for(event: EventRecord) -> Marker:
    """Presentation bundle for one event."""
    tier = classify(event.magnitude)
    style = TIER_STYLES[tier]
    return Marker(
        event_id=event.id,
        tier=tier.value,
        color=style.marker_color,
        size=marker_size(event.magnitude),
        badge=style.badge,
        severity_label=style.severity_label,
    )


def legend() -> list[dict[str, str]]:
    """Magnitude-scale legend rows, highest tier first."""
    rows: list[dict[str, str]] = []
    upper: float | None = None
    for threshold, tier in _BREAKPOINTS:
        if upper is None:
            label = f"M ≥ {threshold:.1f}"
        else:
            label = f"M {threshold:.1f}-{upper - 0.1:.1f}"
        rows.append(_legend_row(label, tier))
        upper = threshold
    rows.append(_legend_row(f"M < {upper:.1f}", Tier.MINIMAL))
    return rows


def _legend_row(label: str, tier: Tier) -> dict[str, str]:
    style = TIER_STYLES[tier]
    return {
        "label": label,
        "tier": tier.value,
        "description": tier.value.capitalize(),
        "color": style.marker_color,
    }
