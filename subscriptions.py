# subscriptions.py

from typing import Any, Dict, List, Optional

from azure.mgmt.resource import SubscriptionClient


class SubscriptionNotFound(Exception):
    pass


def list_subscriptions(credential) -> List[Dict[str, Any]]:
    client = SubscriptionClient(credential)
    out: List[Dict[str, Any]] = []
    for sub in client.subscriptions.list():
        state = getattr(sub, "state", None)
        out.append({
            "id": sub.subscription_id,
            "name": sub.display_name or "",
            "state": str(getattr(state, "value", state) or ""),
        })
    return out


def find_subscription(subscriptions: List[Dict[str, Any]], selection: Optional[str]) -> Dict[str, Any]:
    """
    Match a subscription by ID or display name, the way `az account set --subscription` does.
    IDs win over names; both compare case-insensitively.
    """
    wanted = (selection or "").strip().lower()
    if not wanted:
        raise SubscriptionNotFound("No subscription name or ID given.")

    for sub in subscriptions:
        if (sub.get("id") or "").lower() == wanted:
            return sub
    for sub in subscriptions:
        if (sub.get("name") or "").lower() == wanted:
            return sub
    raise SubscriptionNotFound(f"Subscription '{selection}' not found or not accessible.")


def resolve_subscription(credential, selection: Optional[str]) -> Dict[str, Any]:
    return find_subscription(list_subscriptions(credential), selection)
