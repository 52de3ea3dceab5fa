# main.py
"""
aztag: ad hoc Azure administration.

Usage:
    aztag tags --resource-group my-rg --rules tag_rules.json
    aztag tags --resource-group my-rg --tag environment=staging --tag owner=ops --dry-run
    aztag create-rg --subscription "My Sub" --name my-rg --location westeurope
    aztag create-mg --names "Platform, Landing Zones, Sandbox"
    aztag subscriptions

Authentication reuses `az login` by default (see settings.py for AZTAG_AUTH).
"""

import argparse
import re
import sys
from typing import Any, Dict, List, Optional

from azure.core.exceptions import AzureError

import console
from credentials import get_credential
from mg_creator import (
    create_management_groups,
    list_management_groups,
    parse_management_group_names,
    print_summary,
)
from rg_creator import create_resource_group, validate_location, validate_resource_group_name
from settings import ConfigError, get_settings
from subscriptions import SubscriptionNotFound, find_subscription, list_subscriptions, resolve_subscription
from tag_auditor import ResourceListError, audit_resource_group_tags, write_report
from tag_rules import TagRules, TagRulesError, load_tag_rules, overlay_tags, parse_tag_assignments

_GUID = re.compile(r"^[0-9a-fA-F]{8}-([0-9a-fA-F]{4}-){3}[0-9a-fA-F]{12}$")


def _looks_like_guid(s: str) -> bool:
    return bool(_GUID.match((s or "").strip()))


def _prompt(label: str) -> str:
    return input(label).strip()


def _print_subscriptions(subs: List[Dict[str, Any]]) -> None:
    for s in subs:
        print(f"  - {s['name']} ({s['id']}) {s['state']}".rstrip())


def _subscription_id(credential, selection: Optional[str]) -> str:
    if not selection:
        raise ConfigError("No subscription given. Use --subscription or set AZURE_SUBSCRIPTION_ID.")
    if _looks_like_guid(selection):
        return selection.strip()
    return resolve_subscription(credential, selection)["id"]


def _load_rules(args, settings: Dict[str, Any]) -> TagRules:
    path = args.rules or settings.get("rules_file")
    rules = load_tag_rules(path) if path else TagRules()
    rules.required = overlay_tags(rules.required, parse_tag_assignments(args.tag))
    if not rules.required and not rules.type_rules:
        raise ConfigError("No required tags configured. Use --rules and/or --tag KEY=VALUE.")
    return rules


# ----------------------------
# Commands
# ----------------------------
def cmd_tags(args, settings: Dict[str, Any]) -> int:
    """Audit a resource group and merge in missing required tags."""
    rules = _load_rules(args, settings)

    resource_group = args.resource_group or rules.resource_group or settings.get("resource_group")
    if not resource_group:
        raise ConfigError("No resource group given. Use --resource-group or set AZTAG_RESOURCE_GROUP.")

    credential = get_credential(settings)
    subscription_id = _subscription_id(credential, args.subscription or settings.get("subscription"))

    try:
        result = audit_resource_group_tags(
            subscription_id, credential, resource_group, rules, dry_run=args.dry_run
        )
    except ResourceListError as e:
        console.error(str(e))
        return 1

    if args.report:
        write_report(args.report, result)
        console.info(f"Report written: {args.report}")

    return 1 if result["summary"]["failed"] else 0


def cmd_create_rg(args, settings: Dict[str, Any]) -> int:
    """Create a resource group in a chosen subscription."""
    credential = get_credential(settings)
    selection = args.subscription or settings.get("subscription")

    print("Fetching available Azure subscriptions...")
    try:
        subs = list_subscriptions(credential)
    except AzureError as e:
        console.error(f"Failed to list Azure subscriptions. Please make sure you are logged in. ({e})")
        return 1

    if not selection:
        _print_subscriptions(subs)
        print("")
        selection = _prompt("Please enter the Subscription Name or ID you want to use: ")

    sub = find_subscription(subs, selection)
    print(f"Using subscription '{sub['name']}' ({sub['id']}).")
    print("")

    tags = parse_tag_assignments(args.tag)
    name = validate_resource_group_name(args.name or _prompt("Enter a name for the new resource group: "))
    location = validate_location(
        args.location or _prompt("Enter the location for the resource group (e.g., eastus, westeurope): ")
    )

    print(f"Creating resource group '{name}' in location '{location}'...")
    try:
        create_resource_group(sub["id"], credential, name, location, tags=tags)
    except AzureError as e:
        print("")
        print("Error: Failed to create the resource group.")
        console.debug(str(e))
        return 1

    print("")
    print(f"Resource group '{name}' was created successfully in subscription '{sub['name']}'.")
    return 0


def cmd_create_mg(args, settings: Dict[str, Any]) -> int:
    """Create a batch of management groups under the Tenant Root Group."""
    credential = get_credential(settings)

    print("Fetching existing management groups...")
    try:
        existing = list_management_groups(credential)
        for mg in existing:
            print(f"  - {mg['id']} ({mg['display_name']})")
    except AzureError as e:
        console.warn(
            "Could not list management groups. You may not have the required permissions, "
            "or there may be none."
        )
        console.debug(str(e))
    print("")

    raw = args.names
    if raw is None:
        raw = _prompt("Enter a comma-separated list of names for the new management groups: ")

    entries = parse_management_group_names(raw)
    result = create_management_groups(credential, entries)
    print_summary(result)
    return 1 if result["fail_count"] else 0


def cmd_subscriptions(args, settings: Dict[str, Any]) -> int:
    """List subscriptions visible to the signed-in identity."""
    credential = get_credential(settings)
    try:
        subs = list_subscriptions(credential)
    except AzureError as e:
        console.error(f"Failed to list Azure subscriptions. Please make sure you are logged in. ({e})")
        return 1
    if not subs:
        console.warn("No subscriptions found.")
    _print_subscriptions(subs)
    return 0


# ----------------------------
# Entry point
# ----------------------------
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="aztag", description="Azure tag audit and resource organisation helper")
    parser.add_argument("--debug", action="store_true", help="Print debug output")
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # tags
    tags_parser = subparsers.add_parser("tags", help="Audit and merge required tags across a resource group")
    tags_parser.add_argument("--subscription", help="Subscription name or ID")
    tags_parser.add_argument("--resource-group", "-g", help="Resource group to audit")
    tags_parser.add_argument("--rules", help="Tag rules JSON file")
    tags_parser.add_argument("--tag", action="append", metavar="KEY=VALUE", help="Required tag (repeatable)")
    tags_parser.add_argument("--dry-run", action="store_true", help="Report missing tags without updating")
    tags_parser.add_argument("--report", metavar="PATH", help="Write the audit result as JSON")

    # create-rg
    rg_parser = subparsers.add_parser("create-rg", help="Create a resource group")
    rg_parser.add_argument("--subscription", help="Subscription name or ID")
    rg_parser.add_argument("--name", help="Resource group name")
    rg_parser.add_argument("--location", help="Azure region, e.g. eastus")
    rg_parser.add_argument("--tag", action="append", metavar="KEY=VALUE", help="Tag for the new group (repeatable)")

    # create-mg
    mg_parser = subparsers.add_parser("create-mg", help="Create management groups under the Tenant Root Group")
    mg_parser.add_argument("--names", help="Comma-separated management group names")

    # subscriptions
    subparsers.add_parser("subscriptions", help="List accessible subscriptions")

    return parser


COMMANDS = {
    "tags": cmd_tags,
    "create-rg": cmd_create_rg,
    "create-mg": cmd_create_mg,
    "subscriptions": cmd_subscriptions,
}


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        settings = get_settings()
        if args.debug or settings["debug"]:
            console.set_debug(True)
        return COMMANDS[args.command](args, settings)
    except (ConfigError, TagRulesError, SubscriptionNotFound, ValueError) as e:
        console.error(str(e))
        return 1
    except AzureError as e:
        console.error(f"Azure request failed: {e}")
        return 1


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
