"""Policy configuration loading and validation."""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

import yaml

_LOGGER = logging.getLogger(__name__)

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


@dataclass(frozen=True)
class BrandRule:
    name: str
    contains: tuple[str, ...] = ()
    prefixes: tuple[str, ...] = ()


DEFAULT_BRANDS: tuple[BrandRule, ...] = (
    BrandRule("Jordan", contains=("air jordan",), prefixes=("jordan",)),
    BrandRule("Nike", contains=("nike",)),
    BrandRule("Adidas", contains=("adidas",)),
    BrandRule("New Balance", contains=("new balance",)),
    BrandRule("Asics", contains=("asics",)),
    BrandRule("Puma", contains=("puma",)),
    BrandRule("Reebok", contains=("reebok",)),
    BrandRule("Converse", contains=("converse",)),
    BrandRule("Saucony", contains=("saucony",)),
    BrandRule("Vans", contains=("vans",)),
    BrandRule("Balenciaga", contains=("balenciaga",)),
    BrandRule("Bape", contains=("bape",)),
    BrandRule("Under Armour", contains=("under armour",)),
)


@dataclass(frozen=True)
class Policy:
    similarity_threshold: float = 0.8
    historical_future_cutoff_months: int = 6
    default_weeks_back: int = 2
    max_weeks_back: int = 12
    min_plausible_year: int = 2020
    max_years_ahead: int = 2
    default_limit: int = 15
    max_limit: int = 50
    brands: tuple[BrandRule, ...] = field(default=DEFAULT_BRANDS)


DEFAULT_POLICY = Policy()

_POSITIVE_INT_KEYS = {
    "historical_future_cutoff_months",
    "default_weeks_back",
    "max_weeks_back",
    "min_plausible_year",
    "default_limit",
    "max_limit",
}

_BRAND_KEYS = {"name", "contains", "prefixes"}


def parse_int(value: Any) -> int | None:
    """Loose integer coercion for untyped request parameters.

    Strings are read up to their first non-digit, the way ``parseInt`` does,
    so ``"4 weeks"`` gives 4. Booleans and non-finite numbers are rejected.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        return int(value)
    if isinstance(value, str):
        match = _LEADING_INT_RE.match(value)
        if match:
            return int(match.group(1))
    return None


def coerce_limit(value: Any, policy: Policy = DEFAULT_POLICY) -> int:
    limit = parse_int(value)
    if limit is None or limit < 1:
        limit = policy.default_limit
    return min(limit, policy.max_limit)


def _load_yaml(path: Path) -> dict[str, Any]:
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path.name} must contain a mapping at the top level")
    return data


def _warn_invalid(key: str, reason: str) -> None:
    _LOGGER.warning("Ignoring policy key '%s': %s", key, reason)


def _string_tuple(value: Any) -> tuple[str, ...] | None:
    if value is None:
        return ()
    if not isinstance(value, list):
        return None
    return tuple(v.lower() for v in value if isinstance(v, str) and v.strip())


def _load_brands(raw: Any) -> tuple[BrandRule, ...] | None:
    if not isinstance(raw, list):
        _warn_invalid("brands", "must be a list of brand entries")
        return None
    rules: list[BrandRule] = []
    for entry in raw:
        if not isinstance(entry, dict):
            _LOGGER.warning("Skipping brand entry %r: must be a mapping", entry)
            continue
        name = entry.get("name")
        if not isinstance(name, str) or not name.strip():
            _LOGGER.warning("Skipping brand entry without a name")
            continue
        for key in entry:
            if key not in _BRAND_KEYS:
                _LOGGER.warning("Ignoring key '%s' in brand '%s'", key, name)
        contains = _string_tuple(entry.get("contains"))
        prefixes = _string_tuple(entry.get("prefixes"))
        if contains is None or prefixes is None:
            _LOGGER.warning("Skipping brand '%s': patterns must be lists", name)
            continue
        if not contains and not prefixes:
            contains = (name.lower(),)
        rules.append(BrandRule(name.strip(), contains=contains, prefixes=prefixes))
    if not rules:
        _warn_invalid("brands", "no valid brand entries found")
        return None
    return tuple(rules)


def load_policy(path: Path) -> Policy:
    raw = _load_yaml(path)
    known = {f.name for f in fields(Policy)}
    overrides: dict[str, Any] = {}

    for key, value in raw.items():
        if key not in known:
            _warn_invalid(key, "unknown key")
            continue
        if key == "brands":
            brands = _load_brands(value)
            if brands is not None:
                overrides["brands"] = brands
            continue
        if key == "similarity_threshold":
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                _warn_invalid(key, "must be a number")
                continue
            if not 0 < value <= 1:
                _warn_invalid(key, "must be in (0, 1]")
                continue
            overrides[key] = float(value)
            continue
        if key == "max_years_ahead":
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                _warn_invalid(key, "must be a non-negative int")
                continue
            overrides[key] = value
            continue
        if key in _POSITIVE_INT_KEYS:
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                _warn_invalid(key, "must be a positive int")
                continue
            overrides[key] = value

    policy = replace(DEFAULT_POLICY, **overrides)
    if policy.default_weeks_back > policy.max_weeks_back:
        raise ValueError("default_weeks_back must not exceed max_weeks_back")
    if policy.default_limit > policy.max_limit:
        raise ValueError("default_limit must not exceed max_limit")
    return policy
