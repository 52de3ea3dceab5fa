# rg_creator.py

import re
from typing import Any, Dict, Optional

from azure.mgmt.resource import ResourceManagementClient

# letters, digits, underscore, hyphen, period, parentheses; may not end with a period
_RG_NAME = re.compile(r"^[\w\-.()]{1,90}$", re.UNICODE)


def validate_resource_group_name(name: str) -> str:
    name = (name or "").strip()
    if not name:
        raise ValueError("Resource group name must not be empty.")
    if not _RG_NAME.match(name) or name.endswith("."):
        raise ValueError(
            f"Invalid resource group name '{name}': use up to 90 letters, digits, "
            "underscores, hyphens, periods or parentheses, not ending in a period."
        )
    return name


def validate_location(location: str) -> str:
    location = (location or "").strip()
    if not location:
        raise ValueError("Location must not be empty (e.g. eastus, westeurope).")
    return location


def create_resource_group(
    subscription_id: str,
    credential,
    name: str,
    location: str,
    tags: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    name = validate_resource_group_name(name)
    location = validate_location(location)

    client = ResourceManagementClient(credential, subscription_id)
    params: Dict[str, Any] = {"location": location}
    if tags:
        params["tags"] = dict(tags)

    rg = client.resource_groups.create_or_update(name, params)
    props = getattr(rg, "properties", None)
    return {
        "id": rg.id,
        "name": rg.name,
        "location": rg.location,
        "tags": rg.tags or {},
        "provisioning_state": getattr(props, "provisioning_state", None),
    }
