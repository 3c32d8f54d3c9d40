"""Tests for the bw subprocess wrapper."""
import subprocess
from unittest import mock

import pytest

from dbvault.credentials.domains.bitwarden_cli import BitwardenCLI
from dbvault.credentials.domains.exceptions import CommandError
from dbvault.credentials.domains.models import ItemLookupStatus


def completed(stdout="", returncode=0):
    return subprocess.CompletedProcess(args=["bw"], returncode=returncode, stdout=stdout)


@pytest.fixture
def run():
    with mock.patch("dbvault.credentials.domains.bitwarden_cli.subprocess.run") as run_mock:
        yield run_mock


class TestStatus:
    """Test bw status."""

    def test_session_passed_through_environment(self, run, monkeypatch):
        """Test that the cached session is exported as BW_SESSION."""
        monkeypatch.setenv("PATH", "/usr/bin")
        run.return_value = completed('{"status": "unlocked"}')

        output = BitwardenCLI().status("tok")

        assert output == '{"status": "unlocked"}'
        env = run.call_args.kwargs["env"]
        assert env["BW_SESSION"] == "tok"
        assert env["PATH"] == "/usr/bin"

    def test_no_session_inherits_environment(self, run):
        """Test that without a cached session the environment isn't overridden."""
        run.return_value = completed('{"status": "locked"}')
        BitwardenCLI().status("")
        assert run.call_args.kwargs["env"] is None

    def test_nonzero_exit_raises(self, run):
        """Test that a failing status command raises CommandError."""
        run.return_value = completed("boom", returncode=1)

        with pytest.raises(CommandError) as exc_info:
            BitwardenCLI().status()

        assert exc_info.value.returncode == 1

    def test_missing_binary_raises(self, run):
        """Test that a missing bw binary raises CommandError."""
        run.side_effect = FileNotFoundError("bw")

        with pytest.raises(CommandError) as exc_info:
            BitwardenCLI().status()

        assert "not found on PATH" in str(exc_info.value)

    def test_timeout_raises(self, run):
        """Test that a hung bw call is cut off."""
        run.side_effect = subprocess.TimeoutExpired(cmd="bw status", timeout=5)

        with pytest.raises(CommandError) as exc_info:
            BitwardenCLI(timeout=5).status()

        assert "timed out" in str(exc_info.value)


class TestGetItem:
    """Test decoding of bw get item output."""

    def test_found(self, run):
        """Test that JSON output is FOUND."""
        run.return_value = completed('{"name": "vault-prod"}')

        lookup = BitwardenCLI().get_item("vault-prod", "tok")

        assert lookup.status is ItemLookupStatus.FOUND
        assert lookup.output == '{"name": "vault-prod"}'
        assert run.call_args.args[0] == ["bw", "get", "item", "vault-prod", "--session", "tok"]

    def test_exact_not_found(self, run):
        """Test that the bare not-found message is NOT_FOUND."""
        run.return_value = completed("Not found.", returncode=1)
        assert BitwardenCLI().get_item("vault-prod", "tok").status is ItemLookupStatus.NOT_FOUND

    def test_not_found_with_extra_output(self, run):
        """Test that warnings around the not-found message don't break detection."""
        run.return_value = completed(
            "(node:1234) Warning: something deprecated\nNot found.\n", returncode=1
        )
        assert BitwardenCLI().get_item("vault-prod", "tok").status is ItemLookupStatus.NOT_FOUND

    def test_other_failure_raises(self, run):
        """Test that a failure that isn't not-found raises CommandError."""
        run.return_value = completed("You are not logged in.", returncode=1)

        with pytest.raises(CommandError):
            BitwardenCLI().get_item("vault-prod", "tok")


class TestInteractiveCommands:
    """Test login and unlock, which hand the terminal to bw."""

    def test_unlock_returns_stripped_session(self, run):
        """Test that unlock returns the raw session without whitespace."""
        run.return_value = completed("c2Vzc2lvbg==\n")

        assert BitwardenCLI().unlock() == "c2Vzc2lvbg=="
        assert run.call_args.args[0] == ["bw", "unlock", "--raw"]
        assert "stdin" not in run.call_args.kwargs
        assert "timeout" not in run.call_args.kwargs

    def test_unlock_failure_raises(self, run):
        """Test that a rejected master password raises CommandError."""
        run.side_effect = subprocess.CalledProcessError(1, ["bw", "unlock", "--raw"])

        with pytest.raises(CommandError):
            BitwardenCLI().unlock()

    def test_login_failure_raises(self, run):
        """Test that a failed login raises CommandError."""
        run.side_effect = subprocess.CalledProcessError(1, ["bw", "login"])

        with pytest.raises(CommandError):
            BitwardenCLI().login()


class TestCreateCommands:
    """Test the template, encode and create commands."""

    def test_encode_feeds_payload_on_stdin(self, run):
        """Test that bw encode receives the item JSON on stdin."""
        run.return_value = completed("ZW5j")

        encoded = BitwardenCLI().encode('{"name": "x"}', "tok")

        assert encoded == "ZW5j"
        assert run.call_args.kwargs["input"] == '{"name": "x"}'
        assert run.call_args.args[0] == ["bw", "encode", "--session", "tok"]

    def test_create_feeds_encoded_on_stdin(self, run):
        """Test that bw create item receives the encoded form on stdin."""
        run.return_value = completed('{"id": "1"}')

        BitwardenCLI(binary="/opt/bw").create_item("ZW5j", "tok")

        assert run.call_args.kwargs["input"] == "ZW5j"
        assert run.call_args.args[0] == ["/opt/bw", "create", "item", "--session", "tok"]

    def test_template_failure_raises(self, run):
        """Test that a failing template fetch raises CommandError."""
        run.return_value = completed("error", returncode=2)

        with pytest.raises(CommandError):
            BitwardenCLI().get_template("tok")
