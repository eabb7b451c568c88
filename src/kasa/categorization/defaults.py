"""System taxonomy and keyword rules shipped with every installation."""

from __future__ import annotations

import re

from kasa.matching.normalize import normalize

SYSTEM_CATEGORIES: list[dict[str, str]] = [
    {"name": "Alimentation", "slug": "food", "color": "#22c55e"},
    {"name": "Transport", "slug": "transport", "color": "#3b82f6"},
    {"name": "Logement", "slug": "housing", "color": "#f59e0b"},
    {"name": "Santé", "slug": "health", "color": "#ec4899"},
    {"name": "Loisirs", "slug": "entertainment", "color": "#8b5cf6"},
    {"name": "Autre", "slug": "other", "color": "#94a3b8"},
]

# (keyword, category slug). Insertion order is rule priority among system rules.
SYSTEM_RULES: list[tuple[str, str]] = [
    ("carrefour", "food"),
    ("leclerc", "food"),
    ("lidl", "food"),
    ("aldi", "food"),
    ("intermarche", "food"),
    ("monoprix", "food"),
    ("franprix", "food"),
    ("picard", "food"),
    ("sncf", "transport"),
    ("ratp", "transport"),
    ("navigo", "transport"),
    ("uber", "transport"),
    ("blablacar", "transport"),
    ("autoroute", "transport"),
    ("loyer", "housing"),
    ("edf", "housing"),
    ("engie", "housing"),
    ("bouygues", "housing"),
    ("orange", "housing"),
    ("sfr", "housing"),
    ("pharmacie", "health"),
    ("medecin", "health"),
    ("dentiste", "health"),
    ("hopital", "health"),
    ("netflix", "entertainment"),
    ("spotify", "entertainment"),
    ("amazon prime", "entertainment"),
    ("canal", "entertainment"),
    ("cinema", "entertainment"),
]


def to_slug(name: str) -> str:
    """Build a URL-safe slug from a category name ("Santé & bien-être" -> "sante-bien-etre")."""
    return re.sub(r"\s+", "-", normalize(name))
