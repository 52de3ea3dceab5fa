# tag_rules.py
"""
Tag rules and the merge logic that decides whether a resource needs a tag update.

Merge semantics match a right-biased JSON object merge (`$required + $current`):
existing tags always keep their current values, required tags that are missing
get their default values, and nothing is ever removed.

Rules file format:
  {
    "resource_group": "example-rg",                 (optional)
    "required_tags": { "environment": "staging", ... },
    "type_rules": {
      "Microsoft.Storage/storageAccounts": { "dataClass": "internal" }
    }
  }
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional

# Azure Resource Manager limits
MAX_TAGS_PER_RESOURCE = 50
MAX_TAG_KEY_LEN = 512
MAX_TAG_VALUE_LEN = 256
INVALID_KEY_CHARS = set('<>%&\\?/')


class TagRulesError(Exception):
    pass


@dataclass
class TagRules:
    required: Dict[str, str] = field(default_factory=dict)
    # keyed by lower-cased resource type
    type_rules: Dict[str, Dict[str, str]] = field(default_factory=dict)
    resource_group: Optional[str] = None


def normalize_tags(tags: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    """None -> {}; values coerced to strings."""
    if not tags:
        return {}
    return {str(k): "" if v is None else str(v) for k, v in tags.items()}


def _tag_value(key: str, value: Any) -> str:
    if isinstance(value, (dict, list)):
        raise TagRulesError(f"Tag '{key}' must have a scalar value, got {type(value).__name__}")
    if isinstance(value, bool):
        return "true" if value else "false"
    return "" if value is None else str(value)


def validate_tag(key: str, value: str) -> None:
    if not key or not key.strip():
        raise TagRulesError("Tag name must not be empty")
    if len(key) > MAX_TAG_KEY_LEN:
        raise TagRulesError(f"Tag name '{key[:40]}...' exceeds {MAX_TAG_KEY_LEN} characters")
    bad = sorted(INVALID_KEY_CHARS.intersection(key))
    if bad:
        raise TagRulesError(f"Tag name '{key}' contains invalid characters: {' '.join(bad)}")
    if len(value) > MAX_TAG_VALUE_LEN:
        raise TagRulesError(f"Value of tag '{key}' exceeds {MAX_TAG_VALUE_LEN} characters")


def overlay_tags(base: Mapping[str, str], extra: Mapping[str, str]) -> Dict[str, str]:
    """
    base updated with extra, comparing tag names case-insensitively: an extra
    key replaces any base key of the same name in another casing.
    """
    replaced = {k.lower() for k in extra}
    out = {k: v for k, v in base.items() if k.lower() not in replaced}
    out.update(extra)
    return out


def _add_unique(out: Dict[str, str], key: str, value: str, where: str) -> None:
    for existing in out:
        if existing != key and existing.lower() == key.lower():
            raise TagRulesError(f"{where} has tag names '{existing}' and '{key}' differing only in case")
    out[key] = value


def _tag_block(raw: Any, where: str) -> Dict[str, str]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise TagRulesError(f"{where} must be a JSON object")
    out: Dict[str, str] = {}
    for k, v in raw.items():
        value = _tag_value(k, v)
        validate_tag(k, value)
        _add_unique(out, k, value, where)
    return out


def rules_from_dict(data: Any) -> TagRules:
    if not isinstance(data, dict):
        raise TagRulesError("Tag rules must be a JSON object")

    required = _tag_block(data.get("required_tags"), "required_tags")

    raw_types = data.get("type_rules") or {}
    if not isinstance(raw_types, dict):
        raise TagRulesError("type_rules must be a JSON object")
    type_rules: Dict[str, Dict[str, str]] = {}
    for rtype, block in raw_types.items():
        key = str(rtype).strip().lower()
        if not key:
            raise TagRulesError("type_rules contains an empty resource type")
        type_rules[key] = overlay_tags(type_rules.get(key, {}), _tag_block(block, f"type_rules['{rtype}']"))

    rg = data.get("resource_group")
    return TagRules(
        required=required,
        type_rules=type_rules,
        resource_group=str(rg) if rg else None,
    )


def load_tag_rules(path: str) -> TagRules:
    if not os.path.isfile(path):
        raise TagRulesError(f"Tag rules file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise TagRulesError(f"Tag rules file {path} is not valid JSON: {e}") from e
    return rules_from_dict(data)


def parse_tag_assignments(items: Optional[Iterable[str]]) -> Dict[str, str]:
    """["env=prod", "owner=ops team"] -> {"env": "prod", "owner": "ops team"}"""
    out: Dict[str, str] = {}
    for item in items or []:
        if "=" not in item:
            raise TagRulesError(f"Invalid tag '{item}': expected KEY=VALUE")
        k, v = item.split("=", 1)
        k = k.strip()
        validate_tag(k, v)
        _add_unique(out, k, v, "--tag")
    return out


def required_tags_for(rules: TagRules, resource_type: Optional[str]) -> Dict[str, str]:
    """Base required tags overlaid with the rule for this resource type (type rule wins)."""
    extra = rules.type_rules.get((resource_type or "").lower())
    if extra:
        return overlay_tags(rules.required, extra)
    return dict(rules.required)


def missing_tags(required: Mapping[str, str], current: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    """Required tags whose name is absent from current (names compare case-insensitively)."""
    present = {k.lower() for k in normalize_tags(current)}
    return {k: v for k, v in required.items() if k.lower() not in present}


def merge_tags(required: Mapping[str, str], current: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    cur = normalize_tags(current)
    merged = missing_tags(required, cur)
    merged.update(cur)
    return merged


def needs_update(current: Optional[Mapping[str, Any]], merged: Mapping[str, str]) -> bool:
    return normalize_tags(current) != dict(merged)


def describe_tags(tags: Mapping[str, str]) -> List[str]:
    return [f"{k}={v}" for k, v in tags.items()]
