from __future__ import annotations
from typing import Optional, Sequence
import math

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
from matplotlib.patches import Wedge

from ..core.scoring import DomainScore
from ..core.tiers import SCALE_MAX, TIER_COLORS, Tier, gauge_segments, segment_label
from ..core.translations import TranslationBundle


def _angle(value: float, scale_max: int) -> float:
    """Map a score onto the half-circle: 0 -> 180 degrees, max -> 0 degrees."""
    clamped = max(0.0, min(float(value), float(scale_max)))
    return 180.0 - clamped / scale_max * 180.0


def gauge_chart(score: float, bundle: Optional[TranslationBundle] = None, scale_max: int = SCALE_MAX):
    """Return a matplotlib Figure with a four-segment readiness gauge."""
    fig, ax = plt.subplots(figsize=(6, 3.4))
    ax.set_aspect("equal")
    ax.axis("off")

    for seg in gauge_segments(scale_max):
        theta_start = _angle(seg.end, scale_max)
        theta_end = _angle(seg.start, scale_max)
        ax.add_patch(Wedge((0, 0), 1.0, theta_start, theta_end, width=0.3, facecolor=seg.color,
                           edgecolor="white", linewidth=2))
        mid = math.radians((theta_start + theta_end) / 2)
        ax.text(0.85 * math.cos(mid), 0.85 * math.sin(mid), segment_label(seg.tier, bundle),
                ha="center", va="center", fontsize=8, color="#1E293B", wrap=True)

    needle = math.radians(_angle(score, scale_max))
    ax.plot([0, 0.62 * math.cos(needle)], [0, 0.62 * math.sin(needle)], color="#1E293B", linewidth=3)
    ax.add_patch(plt.Circle((0, 0), 0.05, color="#1E293B"))
    ax.text(0, -0.2, f"{int(round(score))}%", ha="center", va="center", fontsize=22,
            fontweight="bold", color="#1E293B")

    ax.set_xlim(-1.1, 1.1)
    ax.set_ylim(-0.35, 1.1)
    return fig


def radar_chart(domain_scores: Sequence[DomainScore], tier: Optional[Tier] = None):
    """Per-domain percentages on a polar axis, one spoke per domain.

    Each vertex is annotated with the domain's earned/available points; the fill
    takes the colour of `tier` (the overall result) when given.
    """
    if len(domain_scores) < 3:
        raise ValueError("radar chart needs at least three domains")

    step = 2 * math.pi / len(domain_scores)
    spokes = [i * step for i in range(len(domain_scores))]
    percents = [ds.percent for ds in domain_scores]
    color = TIER_COLORS[tier] if tier is not None else "#1E293B"

    fig, ax = plt.subplots(figsize=(6, 6), subplot_kw={"polar": True})
    ax.set_theta_zero_location("N")
    ax.set_theta_direction(-1)
    ax.set_xticks(spokes)
    ax.set_xticklabels([ds.name for ds in domain_scores], fontsize=9)
    ax.set_ylim(0, SCALE_MAX)
    ax.set_yticks([25, 50, 75, 100])
    ax.set_yticklabels(["25", "50", "75", "100"], fontsize=7, color="#64748B")

    # close the polygon back on the first spoke
    ax.plot(spokes + spokes[:1], percents + percents[:1], linewidth=2, color=color)
    ax.fill(spokes + spokes[:1], percents + percents[:1], alpha=0.2, color=color)
    for angle, ds in zip(spokes, domain_scores):
        ax.annotate(f"{ds.earned}/{ds.available}", xy=(angle, ds.percent), xytext=(0, 6),
                    textcoords="offset points", ha="center", fontsize=7, color="#1E293B")
    return fig
