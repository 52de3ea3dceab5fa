# tag_auditor.py
"""
Audit and enforce required tags for every resource in a resource group.

For each resource (in list order):
  - required = base required tags + rule for its resource type
  - merged   = required merged under the current tags (current values win)
  - if merged differs from current, the resource's full tag set is replaced
    with merged; otherwise nothing is sent.

Tags are MERGED: existing tags, including ones with different values, are kept.
A failed update is reported and the audit moves on to the next resource.
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, List, Optional

from azure.core.exceptions import AzureError
from azure.mgmt.resource import ResourceManagementClient

import console
from tag_rules import (
    MAX_TAGS_PER_RESOURCE,
    TagRules,
    describe_tags,
    merge_tags,
    missing_tags,
    needs_update,
    normalize_tags,
    required_tags_for,
)

STATUS_COMPLIANT = "compliant"
STATUS_UPDATED = "updated"
STATUS_WOULD_UPDATE = "would_update"
STATUS_FAILED = "failed"


class ResourceListError(Exception):
    pass


class TagUpdateError(Exception):
    pass


def _pick_api_version(versions: List[str]) -> Optional[str]:
    stable = [v for v in versions if "preview" not in v.lower()]
    pool = stable or versions
    return sorted(pool, reverse=True)[0] if pool else None


def resolve_api_version(client, resource_type: str, cache: Dict[str, Optional[str]]) -> str:
    """
    Newest non-preview API version registered for a resource type, e.g.
    "Microsoft.Network/virtualNetworks/subnets" -> provider "Microsoft.Network",
    type "virtualNetworks/subnets". Cached per type for the run.
    """
    key = (resource_type or "").lower()
    if key not in cache:
        namespace, _, rtype = (resource_type or "").partition("/")
        if not namespace or not rtype:
            raise TagUpdateError(f"Cannot parse resource type '{resource_type}'")

        provider = client.providers.get(namespace)
        version = None
        for rt in provider.resource_types or []:
            if (rt.resource_type or "").lower() == rtype.lower():
                version = _pick_api_version(list(rt.api_versions or []))
                break
        console.debug(f"API version for {resource_type}: {version}")
        cache[key] = version

    version = cache[key]
    if not version:
        raise TagUpdateError(f"No API version registered for resource type '{resource_type}'")
    return version


def _list_resources(client, resource_group: str) -> List[Any]:
    try:
        return list(client.resources.list_by_resource_group(resource_group))
    except AzureError as e:
        raise ResourceListError(
            f"Could not list resources in resource group '{resource_group}': {e}"
        ) from e


def check_tag_limit(merged: Dict[str, str]) -> None:
    if len(merged) > MAX_TAGS_PER_RESOURCE:
        raise TagUpdateError(
            f"Merged tag set has {len(merged)} tags; Azure allows {MAX_TAGS_PER_RESOURCE} per resource"
        )


def _apply_tags(client, resource, merged: Dict[str, str], cache: Dict[str, Optional[str]]) -> None:
    api_version = resolve_api_version(client, resource.type, cache)
    # PATCH with a tags body replaces the resource's whole tag set
    poller = client.resources.begin_update_by_id(resource.id, api_version, {"tags": merged})
    poller.result()


def audit_resource_group_tags(
    subscription_id: str,
    credential,
    resource_group: str,
    rules: TagRules,
    dry_run: bool = False,
) -> Dict[str, Any]:
    """
    Returns:
      {
        "summary": { resource_group, total, compliant, updated, would_update, failed, dry_run },
        "resources": [ { id, name, type, status, missing, error } ]
      }
    """
    client = ResourceManagementClient(credential, subscription_id)

    print(f"--- Starting Tag Audit for Resource Group: '{resource_group}' ---")
    if dry_run:
        console.info("Dry run: no tags will be changed.")

    resources = _list_resources(client, resource_group)

    rows: List[Dict[str, Any]] = []
    counts = {STATUS_COMPLIANT: 0, STATUS_UPDATED: 0, STATUS_WOULD_UPDATE: 0, STATUS_FAILED: 0}

    if not resources:
        print(f"No resources found in resource group '{resource_group}'.")

    api_versions: Dict[str, Optional[str]] = {}

    for res in resources:
        name = res.name or res.id
        print(f"Checking: {name}")

        current = normalize_tags(res.tags)
        required = required_tags_for(rules, res.type)
        merged = merge_tags(required, current)
        missing = missing_tags(required, current)

        row: Dict[str, Any] = {
            "id": res.id,
            "name": name,
            "type": res.type,
            "status": STATUS_COMPLIANT,
            "missing": missing,
            "error": None,
        }

        if not needs_update(current, merged):
            print("  All required tags are present. No update needed.")
        else:
            action = "Would apply update." if dry_run else "Applying update..."
            print(f"  [MISSING] Tags are missing: {', '.join(describe_tags(missing))}. {action}")
            try:
                check_tag_limit(merged)
                if dry_run:
                    row["status"] = STATUS_WOULD_UPDATE
                else:
                    _apply_tags(client, res, merged, api_versions)
                    print(f"  Successfully updated tags for {name}.")
                    row["status"] = STATUS_UPDATED
            except (AzureError, TagUpdateError) as e:
                print(f"  FAILED to update tags for {name}.")
                console.debug(f"{name}: {e}")
                row["status"] = STATUS_FAILED
                row["error"] = str(e)

        counts[row["status"]] += 1
        rows.append(row)
        console.separator()

    summary = {
        "resource_group": resource_group,
        "total": len(rows),
        "compliant": counts[STATUS_COMPLIANT],
        "updated": counts[STATUS_UPDATED],
        "would_update": counts[STATUS_WOULD_UPDATE],
        "failed": counts[STATUS_FAILED],
        "dry_run": dry_run,
    }

    print("--- Tag Audit Complete ---")
    if rows:
        print(
            f"Checked: {summary['total']} • Compliant: {summary['compliant']} • "
            f"Updated: {summary['updated']} • Would update: {summary['would_update']} • "
            f"Failed: {summary['failed']}"
        )

    return {"summary": summary, "resources": rows}


def write_report(path: str, result: Dict[str, Any]) -> None:
    folder = os.path.dirname(path)
    if folder:
        os.makedirs(folder, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(result, f, indent=2)
