"""CLI dispatch and exit codes."""

import json
from unittest.mock import Mock

import pytest
from azure.core.exceptions import HttpResponseError

import main

SUB_ID = "11111111-2222-3333-4444-555555555555"
SUBS = [{"id": SUB_ID, "name": "Production", "state": "Enabled"}]

BASE_SETTINGS = {
    "subscription": None,
    "tenant_id": None,
    "auth_mode": "cli",
    "access_token": None,
    "resource_group": None,
    "rules_file": None,
    "debug": False,
}


def _result(failed=0):
    return {
        "summary": {"resource_group": "rg-app", "total": 1, "compliant": 0, "updated": 1 - failed,
                    "would_update": 0, "failed": failed, "dry_run": False},
        "resources": [],
    }


@pytest.fixture
def settings(monkeypatch):
    s = dict(BASE_SETTINGS)
    monkeypatch.setattr(main, "get_settings", lambda: s)
    monkeypatch.setattr(main, "get_credential", Mock(return_value="cred"))
    return s


@pytest.fixture
def audit(monkeypatch) -> Mock:
    fn = Mock(return_value=_result())
    monkeypatch.setattr(main, "audit_resource_group_tags", fn)
    return fn


def test_no_command_prints_help():
    assert main.main([]) == 1


class TestTagsCommand:
    def test_tags_from_cli(self, settings, audit):
        rc = main.main(["tags", "--subscription", SUB_ID, "-g", "rg-app", "--tag", "env=staging", "--dry-run"])

        assert rc == 0
        sub, cred, rg, rules = audit.call_args.args
        assert (sub, cred, rg) == (SUB_ID, "cred", "rg-app")
        assert rules.required == {"env": "staging"}
        assert audit.call_args.kwargs == {"dry_run": True}

    def test_rules_file_and_env_defaults(self, settings, audit, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text(json.dumps({"resource_group": "rg-from-file", "required_tags": {"env": "prod"}}))
        settings.update({"subscription": SUB_ID, "rules_file": str(path)})

        assert main.main(["tags", "--tag", "owner=ops"]) == 0

        _, _, rg, rules = audit.call_args.args
        assert rg == "rg-from-file"
        assert rules.required == {"env": "prod", "owner": "ops"}

    def test_cli_tag_replaces_rules_file_key_in_other_casing(self, settings, audit, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text(json.dumps({"required_tags": {"environment": "staging", "owner": "ops"}}))

        rc = main.main(["tags", "--subscription", SUB_ID, "-g", "rg", "--rules", str(path),
                        "--tag", "Environment=prod"])

        assert rc == 0
        rules = audit.call_args.args[3]
        assert rules.required == {"owner": "ops", "Environment": "prod"}

    def test_subscription_name_is_resolved(self, settings, audit, monkeypatch):
        resolve = Mock(return_value=SUBS[0])
        monkeypatch.setattr(main, "resolve_subscription", resolve)

        assert main.main(["tags", "--subscription", "Production", "-g", "rg", "--tag", "a=b"]) == 0

        resolve.assert_called_once_with("cred", "Production")
        assert audit.call_args.args[0] == SUB_ID

    def test_missing_required_tags(self, settings, audit, capsys):
        assert main.main(["tags", "--subscription", SUB_ID, "-g", "rg"]) == 1
        assert "No required tags configured" in capsys.readouterr().out
        audit.assert_not_called()

    def test_missing_resource_group(self, settings, audit):
        assert main.main(["tags", "--subscription", SUB_ID, "--tag", "a=b"]) == 1
        audit.assert_not_called()

    def test_missing_subscription(self, settings, audit):
        assert main.main(["tags", "-g", "rg", "--tag", "a=b"]) == 1

    def test_failed_updates_exit_non_zero(self, settings, audit):
        audit.return_value = _result(failed=1)
        assert main.main(["tags", "--subscription", SUB_ID, "-g", "rg", "--tag", "a=b"]) == 1

    def test_list_failure_exit_non_zero(self, settings, audit):
        audit.side_effect = main.ResourceListError("boom")
        assert main.main(["tags", "--subscription", SUB_ID, "-g", "rg", "--tag", "a=b"]) == 1

    def test_report_written(self, settings, audit, tmp_path):
        out = tmp_path / "report.json"
        main.main(["tags", "--subscription", SUB_ID, "-g", "rg", "--tag", "a=b", "--report", str(out)])
        assert json.loads(out.read_text())["summary"]["updated"] == 1


class TestCreateRg:
    def test_prompts_for_missing_values(self, settings, monkeypatch, capsys):
        monkeypatch.setattr(main, "list_subscriptions", Mock(return_value=SUBS))
        create = Mock()
        monkeypatch.setattr(main, "create_resource_group", create)
        answers = iter(["production", "rg-app", "eastus"])
        monkeypatch.setattr("builtins.input", lambda _prompt: next(answers))

        assert main.main(["create-rg"]) == 0

        create.assert_called_once_with(SUB_ID, "cred", "rg-app", "eastus", tags={})
        assert "created successfully in subscription 'Production'" in capsys.readouterr().out

    def test_unknown_subscription(self, settings, monkeypatch):
        monkeypatch.setattr(main, "list_subscriptions", Mock(return_value=SUBS))
        assert main.main(["create-rg", "--subscription", "Nope", "--name", "rg", "--location", "eastus"]) == 1

    def test_listing_failure(self, settings, monkeypatch):
        monkeypatch.setattr(main, "list_subscriptions", Mock(side_effect=HttpResponseError(message="401")))
        assert main.main(["create-rg"]) == 1

    def test_create_failure(self, settings, monkeypatch, capsys):
        monkeypatch.setattr(main, "list_subscriptions", Mock(return_value=SUBS))
        monkeypatch.setattr(main, "create_resource_group", Mock(side_effect=HttpResponseError(message="denied")))

        rc = main.main(["create-rg", "--subscription", SUB_ID, "--name", "rg", "--location", "eastus", "--tag", "a=b"])

        assert rc == 1
        assert "Error: Failed to create the resource group." in capsys.readouterr().out

    def test_invalid_name(self, settings, monkeypatch):
        monkeypatch.setattr(main, "list_subscriptions", Mock(return_value=SUBS))
        create = Mock()
        monkeypatch.setattr(main, "create_resource_group", create)
        assert main.main(["create-rg", "--subscription", SUB_ID, "--name", "bad name", "--location", "eastus"]) == 1
        create.assert_not_called()


class TestCreateMg:
    def test_batch_with_failure_exits_non_zero(self, settings, monkeypatch):
        monkeypatch.setattr(main, "list_management_groups", Mock(side_effect=HttpResponseError(message="403")))
        create = Mock(return_value={"success_count": 1, "fail_count": 1, "created": ["A"],
                                    "failed": [{"id": "B", "input": "B", "error": "x"}]})
        monkeypatch.setattr(main, "create_management_groups", create)

        assert main.main(["create-mg", "--names", "A, B"]) == 1
        create.assert_called_once_with("cred", [("A", "A"), ("B", "B")])

    def test_prompted_names(self, settings, monkeypatch):
        monkeypatch.setattr(main, "list_management_groups", Mock(return_value=[]))
        create = Mock(return_value={"success_count": 1, "fail_count": 0, "created": ["LandingZones"], "failed": []})
        monkeypatch.setattr(main, "create_management_groups", create)
        monkeypatch.setattr("builtins.input", lambda _prompt: "Landing Zones")

        assert main.main(["create-mg"]) == 0
        create.assert_called_once_with("cred", [("LandingZones", "Landing Zones")])


def test_subscriptions_listing(settings, monkeypatch, capsys):
    monkeypatch.setattr(main, "list_subscriptions", Mock(return_value=SUBS))
    assert main.main(["subscriptions"]) == 0
    assert f"Production ({SUB_ID}) Enabled" in capsys.readouterr().out
