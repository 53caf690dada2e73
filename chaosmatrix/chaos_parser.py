"""Chaos parser: turns a free-form task dump into task drafts.

Each non-blank line becomes one draft. A small fixed set of markers is read
out of the line and removed from the visible title:

- ``urgent``/``urgente`` (optionally in brackets) flags the task urgent
- ``(30 min)``, ``(45m)``, ``(2h)``, ``(1 hora)`` sets the duration in minutes
- ``#tag`` adds a tag
- ``!i:80`` and ``!e:20`` pin impact and effort

Impact and effort that no marker pins are drawn from ``rng`` so a fresh dump
spreads across the priority map instead of piling up in the centre.
"""

from __future__ import annotations

import logging
import random
import re
from dataclasses import replace
from datetime import date

from chaosmatrix.models import (
    Category,
    Recurrence,
    TaskDraft,
    clamp_duration,
    clamp_percent,
)
from chaosmatrix.normalizer import clean_title, strip_marker

logger = logging.getLogger(__name__)

URGENCY_PATTERN = re.compile(
    r"\[urgente?\]|(?<![#\w])urgente?(?!\w)", re.IGNORECASE
)
DURATION_PATTERN = re.compile(
    r"\((\d+)\s*(min|m|hour|hora|h)\)", re.IGNORECASE
)
TAG_PATTERN = re.compile(r"#(\w+)")
IMPACT_PATTERN = re.compile(r"!i:(\d+)", re.IGNORECASE)
EFFORT_PATTERN = re.compile(r"!e:(\d+)", re.IGNORECASE)

HOUR_UNITS = {"h", "hour", "hora"}
WORKDAY_MINUTES = 480
RANDOM_FLOOR = 20.0
RANDOM_SPAN = 60.0


def parse(raw_text: str, rng: random.Random | None = None) -> list[TaskDraft]:
    """Parse a multi-line dump into drafts, one per non-blank line, in order."""
    if not raw_text:
        return []
    rng = rng or random.Random()
    drafts = [
        parse_line(line, rng) for line in raw_text.split("\n") if line.strip()
    ]
    logger.debug("parsed %s draft(s) from chaos text", len(drafts))
    return drafts


def parse_line(line: str, rng: random.Random) -> TaskDraft:
    raw = line.strip()
    title = raw

    urgency = URGENCY_PATTERN.search(raw) is not None
    if urgency:
        title = strip_marker(title, URGENCY_PATTERN)

    duration = None
    duration_match = DURATION_PATTERN.search(raw)
    if duration_match:
        duration = _duration_minutes(duration_match)
        title = title.replace(duration_match.group(0), " ", 1)

    tags: list[str] = []
    for tag in TAG_PATTERN.findall(raw):
        if tag not in tags:
            tags.append(tag)
    if tags:
        title = strip_marker(title, TAG_PATTERN)

    impact_match = IMPACT_PATTERN.search(raw)
    effort_match = EFFORT_PATTERN.search(raw)
    title = strip_marker(title, IMPACT_PATTERN)
    title = strip_marker(title, EFFORT_PATTERN)

    effort = None
    if duration is not None:
        effort = min(100.0, duration / WORKDAY_MINUTES * 100)
    if effort_match:
        effort = clamp_percent(float(effort_match.group(1)))
    if impact_match:
        impact = clamp_percent(float(impact_match.group(1)))
    else:
        impact = _random_percent(rng)
    if effort is None:
        effort = _random_percent(rng)

    return TaskDraft(
        title=clean_title(title) or raw,
        impact=impact,
        effort=effort,
        urgency=urgency,
        duration=duration,
        tags=tuple(tags),
    )


def apply_batch_defaults(
    drafts: list[TaskDraft],
    *,
    target_date: date | None = None,
    recurrence: Recurrence = Recurrence.NONE,
    category: Category = Category.OWN,
    client_name: str | None = None,
) -> list[TaskDraft]:
    """Stamp the scheduling and client fields chosen for a whole dump."""
    if category is Category.CLIENT:
        client_name = client_name.strip() if client_name else client_name
    else:
        client_name = None
    return [
        replace(
            draft,
            target_date=target_date,
            recurrence=recurrence,
            category=category,
            client_name=client_name,
        )
        for draft in drafts
    ]


def _duration_minutes(match: re.Match[str]) -> int:
    value = int(match.group(1))
    unit = match.group(2).lower()
    if unit in HOUR_UNITS:
        value *= 60
    return clamp_duration(value) or 0


def _random_percent(rng: random.Random) -> float:
    return RANDOM_FLOOR + rng.random() * RANDOM_SPAN
