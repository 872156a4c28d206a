"""Brand vocabulary lookup."""

from __future__ import annotations

from .config import DEFAULT_POLICY, Policy


def normalize_brand(text: str | None, policy: Policy = DEFAULT_POLICY) -> str | None:
    """Map free text (a brand hint or a product title) onto the brand vocabulary.

    Rules are checked in order, so "Air Jordan ... Nike" resolves to Jordan.
    """
    if not text:
        return None
    lowered = text.lower().strip()
    for rule in policy.brands:
        if any(lowered.startswith(prefix) for prefix in rule.prefixes):
            return rule.name
        if any(pattern in lowered for pattern in rule.contains):
            return rule.name
    return None


def resolve_brand(
    brand_hint: str | None, title: str | None, policy: Policy = DEFAULT_POLICY
) -> str | None:
    return normalize_brand(brand_hint, policy) or normalize_brand(title, policy)
