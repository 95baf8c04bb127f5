"""Tests for CLI command implementations."""

from unittest.mock import MagicMock, patch

import pytest

from floaty.cli.commands import (
    delete_token,
    delete_vms,
    get_token,
    get_vms,
    list_vms,
    modify_vms,
    revert_vm,
    service_examples,
    token_status,
)
from floaty.errors import InvalidResponseError, MissingParameterError, ModifyError, UnsupportedModificationError
from floaty.models.config import BackendKind
from floaty.models.modify import ModifyPatch


def make_service(kind=BackendKind.VMPOOLER):
    service = MagicMock()
    service.kind = kind
    service.url = "https://vmpooler.example.com"
    service.user = "jdoe"
    return service


def emitted(mock_console):
    return [c.args[0] for c in mock_console.print.call_args_list]


class TestGetVms:
    """Tests for acquiring VMs."""

    @patch("floaty.utils.output.console")
    def test_get_prints_hosts(self, mock_console):
        service = make_service()
        service.retrieve.return_value = {
            "ok": True,
            "domain": "example.com",
            "centos-7": {"hostname": ["aaa", "bbb"]},
        }

        assert get_vms(service, ["centos-7=2"]) is True

        service.retrieve.assert_called_once_with({"centos-7": 2}, use_token=True, ondemand=False, continue_id=None)
        assert emitted(mock_console) == ["- aaa.example.com (centos-7)\n- bbb.example.com (centos-7)"]

    def test_get_without_os(self):
        with pytest.raises(MissingParameterError):
            get_vms(make_service(), [])

    def test_get_large_request_needs_force(self):
        service = make_service()

        assert get_vms(service, ["centos-7=6"]) is False
        service.retrieve.assert_not_called()

    @patch("floaty.utils.output.console")
    def test_get_large_request_with_force(self, mock_console):
        service = make_service()
        service.retrieve.return_value = {"ok": True, "centos-7": {"hostname": ["a.example.com"]}}

        assert get_vms(service, ["centos-7=6"], force=True) is True

    @patch("floaty.utils.output.console")
    def test_get_ondemand_waits_for_request(self, mock_console):
        service = make_service()
        service.retrieve.return_value = {"ok": True, "request_id": "r1"}
        service.wait_for_request.return_value = {"ok": True, "centos-7": {"hostname": ["a.example.com"]}}

        assert get_vms(service, ["centos-7"], ondemand=True) is True

        service.wait_for_request.assert_called_once_with("r1")
        mock_console.print_json.assert_called_once_with(data={"centos-7": ["a.example.com"]})

    def test_get_ondemand_timeout(self):
        service = make_service()
        service.retrieve.return_value = {"ok": True, "request_id": "r1"}
        service.wait_for_request.return_value = False

        assert get_vms(service, ["centos-7"], ondemand=True) is False

    @patch("floaty.utils.output.console")
    def test_continue_resumes_ondemand_request(self, mock_console):
        service = make_service()
        service.wait_for_request.return_value = {"ok": True, "centos-7": {"hostname": ["a.example.com"]}}

        assert get_vms(service, [], continue_id="r1") is True

        service.retrieve.assert_not_called()
        service.wait_for_request.assert_called_once_with("r1")

    @patch("floaty.utils.output.console")
    def test_continue_resubmits_abs_job(self, mock_console):
        service = make_service(BackendKind.ABS)
        service.retrieve.return_value = {"ok": True, "job_id": "1234", "centos-7": {"hostname": ["a.example.com"]}}

        assert get_vms(service, ["centos-7"], continue_id="1234", as_json=True) is True

        service.retrieve.assert_called_once_with({"centos-7": 1}, use_token=True, ondemand=False, continue_id="1234")
        mock_console.print_json.assert_called_once_with(data={"job_id": "1234", "centos-7": ["a.example.com"]})


class TestListVms:
    """Tests for listing."""

    @patch("floaty.utils.output.console")
    def test_list_templates(self, mock_console):
        service = make_service()
        service.list.return_value = ["centos-7", "debian-9"]

        list_vms(service, "c")

        service.list.assert_called_once_with("c")
        assert emitted(mock_console) == ["centos-7", "debian-9"]

    @patch("floaty.utils.output.console")
    def test_list_active_none_running(self, mock_console, caplog):
        caplog.set_level("INFO")
        service = make_service()
        service.list_active.return_value = []

        list_vms(service, active=True)

        assert "You have no running VMs on vmpooler.example.com" in caplog.text
        mock_console.print.assert_not_called()

    @patch("floaty.utils.output.console")
    def test_list_active_json_none_running(self, mock_console):
        service = make_service()
        service.list_active.return_value = []

        list_vms(service, active=True, as_json=True)

        mock_console.print_json.assert_called_once_with(data={})

    @patch("floaty.cli.commands.pretty_print_hosts")
    @patch("floaty.utils.output.console")
    def test_list_active_abs_uses_job_ids(self, mock_console, mock_pretty_print):
        service = make_service(BackendKind.ABS)
        service.url = "https://abs.example.com"
        service.list_active_job_ids.return_value = ["1234"]

        list_vms(service, active=True)

        service.list_active.assert_not_called()
        assert emitted(mock_console) == ["Your VMs on abs.example.com:"]
        mock_pretty_print.assert_called_once_with(service, ["1234"])


class TestModifyVms:
    """Tests for modifying one or more VMs."""

    @patch("floaty.utils.output.console")
    def test_modify_single_vm(self, mock_console):
        service = make_service()
        patch_ = ModifyPatch(lifetime=12)

        assert modify_vms(service, "vm1", patch_) is True

        service.modify.assert_called_once_with("vm1", patch_)
        assert emitted(mock_console)[0] == "Successfully modified VM vm1."

    def test_modify_requires_target(self):
        service = make_service()

        assert modify_vms(service, None, ModifyPatch(lifetime=12)) is False
        service.modify.assert_not_called()

    @patch("floaty.utils.output.console")
    def test_bulk_modify_continues_after_failure(self, mock_console, caplog):
        service = make_service()
        service.modify.side_effect = [{"ok": True}, ModifyError("HTTP 400: Failed to modify vm2"), {"ok": True}]
        patch_ = ModifyPatch(lifetime=12)

        assert modify_vms(service, "vm1,vm2,vm3", patch_) is False

        assert [c.args[0] for c in service.modify.call_args_list] == ["vm1", "vm2", "vm3"]
        assert emitted(mock_console) == ["Successfully modified 2 of 3 VMs."]
        assert "- vm2" in caplog.text

    @patch("floaty.utils.output.console")
    def test_bulk_modify_continues_after_unreadable_response(self, mock_console, caplog):
        service = make_service()
        service.modify.side_effect = [
            {"ok": True},
            InvalidResponseError("HTTP 502: response is not valid JSON: <html>Bad Gateway</html>"),
            {"ok": True},
        ]

        assert modify_vms(service, "vm1,vm2,vm3", ModifyPatch(lifetime=12)) is False

        assert service.modify.call_count == 3
        assert emitted(mock_console) == ["Successfully modified 2 of 3 VMs."]
        assert "HTTP 502" in caplog.text
        assert "- vm2" in caplog.text

    @patch("floaty.utils.output.console")
    def test_modify_all_uses_active_vms(self, mock_console):
        service = make_service()
        service.list_active.return_value = ["vm1", "vm2"]

        assert modify_vms(service, None, ModifyPatch(lifetime=12), modify_all=True) is True

        assert service.modify.call_count == 2
        assert emitted(mock_console)[0] == "Successfully modified all 2 VMs."

    def test_unsupported_modification_aborts(self):
        service = make_service()
        service.modify.side_effect = UnsupportedModificationError("not supported")

        with pytest.raises(UnsupportedModificationError):
            modify_vms(service, "vm1,vm2", ModifyPatch(reason="testing"))
        assert service.modify.call_count == 1


class TestDeleteVms:
    """Tests for deleting VMs."""

    @patch("floaty.utils.output.console")
    def test_delete_hosts(self, mock_console):
        service = make_service()
        service.delete.return_value = {"vm1": {"ok": True}, "vm2": {"ok": True}}

        assert delete_vms(service, "vm1,vm2") is True

        service.delete.assert_called_once_with(["vm1", "vm2"])
        assert emitted(mock_console) == ["Scheduled the following VMs for deletion:", "- vm1", "- vm2"]

    @patch("floaty.utils.output.console")
    def test_delete_with_failures(self, mock_console, caplog):
        caplog.set_level("INFO")
        service = make_service()
        service.delete.return_value = {"vm1": {"ok": True}, "vm2": {"ok": False}}

        assert delete_vms(service, "vm1,vm2") is False

        assert "Unable to delete the following VMs:" in caplog.text
        assert "- vm2" in caplog.text

    @patch("floaty.utils.output.console")
    def test_delete_json(self, mock_console):
        service = make_service()
        service.delete.return_value = {"vm1": {"ok": True}}

        assert delete_vms(service, "vm1", as_json=True) is True

        mock_console.print_json.assert_called_once_with(data=["vm1"])

    def test_delete_nothing(self):
        assert delete_vms(make_service(), None) is False

    @patch("floaty.cli.commands.typer.confirm", return_value=False)
    @patch("floaty.cli.commands.pretty_print_hosts")
    def test_delete_all_declined(self, mock_pretty_print, mock_confirm):
        service = make_service()
        service.list_active.return_value = ["vm1"]

        assert delete_vms(service, None, delete_all=True) is True

        mock_pretty_print.assert_called_once_with(service, ["vm1"], print_to_stderr=True)
        service.delete.assert_not_called()

    @patch("floaty.cli.commands.typer.confirm")
    @patch("floaty.utils.output.console")
    def test_delete_all_forced_abs(self, mock_console, mock_confirm):
        service = make_service(BackendKind.ABS)
        service.list_active_job_ids.return_value = ["1234"]
        service.delete.return_value = {"a.example.com": {"ok": True}}

        assert delete_vms(service, None, delete_all=True, force=True) is True

        mock_confirm.assert_not_called()
        service.delete.assert_called_once_with(["1234"])


class TestOtherCommands:
    """Tests for revert, token and service commands."""

    @patch("floaty.utils.output.console")
    def test_revert_prefers_positional_sha(self, mock_console):
        service = make_service()

        revert_vm(service, "vm1", "abc", "def")

        service.revert.assert_called_once_with("vm1", "abc")

    @patch("floaty.cli.commands.typer.prompt", return_value="hunter2")
    @patch("floaty.utils.output.console")
    def test_token_get(self, mock_console, mock_prompt):
        service = make_service()
        service.get_new_token.return_value = "newtoken"

        get_token(service)

        service.get_new_token.assert_called_once_with("hunter2", user="jdoe")
        assert emitted(mock_console) == ["newtoken"]

    @patch("floaty.cli.commands.typer.prompt", return_value="hunter2")
    @patch("floaty.utils.output.console")
    def test_token_delete(self, mock_console, mock_prompt):
        service = make_service()
        service.delete_token.return_value = {"ok": True}

        delete_token(service, token="abc")

        service.delete_token.assert_called_once_with("hunter2", token="abc", user="jdoe")
        mock_console.print_json.assert_called_once_with(data={"ok": True})

    @patch("floaty.utils.output.console")
    def test_token_status(self, mock_console):
        service = make_service()
        service.token_status.return_value = {"ok": True}

        token_status(service, token="abc")

        service.token_status.assert_called_once_with("abc")

    @patch("floaty.utils.output.console")
    def test_service_examples(self, mock_console):
        service_examples()

        assert "vmpooler_fallback" in emitted(mock_console)[0]
