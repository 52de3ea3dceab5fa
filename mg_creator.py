# mg_creator.py
"""
Batch creation of management groups under the Tenant Root Group.

Input is a comma-separated list of names. Each name is trimmed; empty entries
are skipped. The group ID is the name with spaces removed and is used as both
the group name and its display name. A failed create is counted and the batch
continues.
"""

from typing import Any, Dict, List, Tuple

from azure.core.exceptions import AzureError
from azure.mgmt.managementgroups import ManagementGroupsAPI
from azure.mgmt.managementgroups.models import CreateManagementGroupRequest

import console


def parse_management_group_names(raw: str) -> List[Tuple[str, str]]:
    """'Platform, Landing Zones,,' -> [("Platform", "Platform"), ("LandingZones", "Landing Zones")]"""
    entries: List[Tuple[str, str]] = []
    for part in (raw or "").split(","):
        trimmed = part.strip()
        if not trimmed:
            continue
        entries.append((trimmed.replace(" ", ""), trimmed))
    return entries


def list_management_groups(credential) -> List[Dict[str, Any]]:
    client = ManagementGroupsAPI(credential)
    return [
        {"id": mg.name, "display_name": mg.display_name or ""}
        for mg in client.management_groups.list()
    ]


def create_management_groups(credential, entries: List[Tuple[str, str]]) -> Dict[str, Any]:
    client = ManagementGroupsAPI(credential)

    created: List[str] = []
    failed: List[Dict[str, str]] = []

    for mg_id, source_name in entries:
        console.separator()
        print(f"Creating management group with ID and Display Name: '{mg_id}'...")

        # no parent: the group lands under the Tenant Root Group
        request = CreateManagementGroupRequest(display_name=mg_id)
        try:
            client.management_groups.begin_create_or_update(mg_id, request).result()
        except AzureError as e:
            print(f"Error: Failed to create '{mg_id}'.")
            console.debug(f"{mg_id}: {e}")
            failed.append({"id": mg_id, "input": source_name, "error": str(e)})
            continue

        print(f"Successfully created '{mg_id}'.")
        created.append(mg_id)

    return {
        "success_count": len(created),
        "fail_count": len(failed),
        "created": created,
        "failed": failed,
    }


def print_summary(result: Dict[str, Any]) -> None:
    console.separator()
    print("")
    print("Script finished.")
    print(f"Successfully created: {result['success_count']}")
    print(f"Failed to create: {result['fail_count']}")

    if result["fail_count"]:
        print("\nFailed groups:")
        for f in result["failed"]:
            print(f"- {f['id']} (from input: '{f['input']}')")
        print("Please check the names, your permissions, and try again for the failed groups.")
