from bisect import bisect_right
from html import escape
from typing import NamedTuple

from streakstats.engine.streaks import StreakStats


BADGE_WIDTH = 495
BADGE_HEIGHT = 195
FONT_FAMILY = "'Segoe UI', Ubuntu, 'Helvetica Neue', Sans-Serif"


class Tier(NamedTuple):
    threshold: int
    label: str
    color: str


# Ascending; each threshold is an inclusive lower bound.
TIERS: tuple[Tier, ...] = (
    Tier(0, "Spark", "#8b949e"),
    Tier(3, "Kindling", "#d29922"),
    Tier(7, "Week Warrior", "#e3b341"),
    Tier(14, "Fortnight Flame", "#f0883e"),
    Tier(21, "Habit Forged", "#f85149"),
    Tier(30, "Monthly Blaze", "#db61a2"),
    Tier(50, "Wildfire", "#bc8cff"),
    Tier(100, "Centurion", "#a371f7"),
    Tier(250, "Inferno", "#58a6ff"),
    Tier(365, "Year of Fire", "#39d353"),
    Tier(500, "Eternal Flame", "#2ea043"),
    Tier(750, "Legend", "#1f6feb"),
    Tier(1000, "Mythic", "#ffd700"),
)

_THRESHOLDS = [tier.threshold for tier in TIERS]


def tier_for_streak(current_streak: int) -> Tier:
    """Return the highest tier whose threshold the streak reaches."""

    index = bisect_right(_THRESHOLDS, max(current_streak, 0)) - 1
    return TIERS[index]


def _pluralize_days(count: int) -> str:
    return f"{count} day" if count == 1 else f"{count} days"


def _badge_body(stats: StreakStats, tier: Tier) -> str:
    last_active = (
        f"Last active {escape(stats.last_active_date)}"
        if stats.last_active_date
        else "No activity yet"
    )
    return f"""
  <style>
    .title {{ font: 600 18px {FONT_FAMILY}; fill: #434d58; }}
    .label {{ font: 14px {FONT_FAMILY}; fill: #434d58; }}
    .stat {{ font: 600 14px {FONT_FAMILY}; fill: #434d58; }}
    .tier {{ font: 600 12px {FONT_FAMILY}; fill: #ffffff; }}
    .footer {{ font: 12px {FONT_FAMILY}; fill: #6e7781; }}
  </style>
  <rect x="0.5" y="0.5" rx="4.5" width="{BADGE_WIDTH - 1}" height="{BADGE_HEIGHT - 1}" stroke="#e4e2e2" fill="#fffefe"/>
  <text x="25" y="45" class="title">🔥 GitHub Streak Stats</text>
  <rect x="330" y="26" rx="10" width="140" height="24" fill="{tier.color}"/>
  <text x="400" y="43" text-anchor="middle" class="tier">{escape(tier.label)}</text>
  <g transform="translate(0, 48)">
    <text x="25" y="40" class="label">Current Streak</text>
    <text x="25" y="65" class="stat">{_pluralize_days(stats.current_streak)}</text>
    <text x="175" y="40" class="label">Longest Streak</text>
    <text x="175" y="65" class="stat">{_pluralize_days(stats.longest_streak)}</text>
    <text x="325" y="40" class="label">Total Commits</text>
    <text x="325" y="65" class="stat">{stats.total_commits}</text>
  </g>
  <text x="25" y="170" class="footer">{last_active}</text>"""


def render_streak_badge(stats: StreakStats) -> str:
    """Render streak statistics as a standalone SVG badge."""

    tier = tier_for_streak(stats.current_streak)
    return (
        f'<svg width="{BADGE_WIDTH}" height="{BADGE_HEIGHT}" '
        f'viewBox="0 0 {BADGE_WIDTH} {BADGE_HEIGHT}" '
        f'xmlns="http://www.w3.org/2000/svg">'
        f"{_badge_body(stats, tier)}\n</svg>"
    )


def render_tier_showcase() -> str:
    """Render one badge per tier, stacked vertically, for visual checks."""

    total_height = BADGE_HEIGHT * len(TIERS)
    badges = []
    for index, tier in enumerate(TIERS):
        sample = StreakStats(
            current_streak=tier.threshold,
            longest_streak=tier.threshold,
            total_commits=tier.threshold * 3,
            last_active_date="2024-02-03" if tier.threshold else None,
        )
        badges.append(
            f'<svg y="{index * BADGE_HEIGHT}" width="{BADGE_WIDTH}" '
            f'height="{BADGE_HEIGHT}">{_badge_body(sample, tier)}\n</svg>'
        )

    return (
        f'<svg width="{BADGE_WIDTH}" height="{total_height}" '
        f'viewBox="0 0 {BADGE_WIDTH} {total_height}" '
        f'xmlns="http://www.w3.org/2000/svg">\n'
        + "\n".join(badges)
        + "\n</svg>"
    )
