from types import SimpleNamespace
from unittest.mock import Mock

import pytest

import tag_auditor


def make_resource(name, rtype="Microsoft.Storage/storageAccounts", tags=None, rg="rg-test"):
    rid = f"/subscriptions/sub-1/resourceGroups/{rg}/providers/{rtype}/{name}"
    return SimpleNamespace(id=rid, name=name, type=rtype, tags=tags)


def make_provider(*type_versions):
    """make_provider(("storageAccounts", ["2023-01-01", ...]), ...)"""
    return SimpleNamespace(
        resource_types=[
            SimpleNamespace(resource_type=t, api_versions=list(v)) for t, v in type_versions
        ]
    )


@pytest.fixture
def rm_client(monkeypatch) -> Mock:
    """ResourceManagementClient replacement for tag_auditor."""
    client = Mock()
    client.resources.list_by_resource_group.return_value = []
    client.providers.get.return_value = make_provider(
        ("storageAccounts", ["2023-05-01-preview", "2022-09-01", "2023-01-01"]),
        ("virtualMachines", ["2023-03-01"]),
    )
    monkeypatch.setattr(tag_auditor, "ResourceManagementClient", Mock(return_value=client))
    return client
