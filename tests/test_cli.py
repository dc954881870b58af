# ==============================================
# Tests for the CLI
# ==============================================

import json

import pytest

from makerchecker.cli import _parse_key, build_parser, main
from makerchecker.lifecycle import LifecycleOrchestrator
from makerchecker.storage import StatementBuilder, TransactionalStore


class TestParser:
    def test_submit_arguments(self):
        args = build_parser().parse_args(
            ["submit", "EMPLOYEE", "--request", "add", "--actor", "alice", "--data", "{}"]
        )

        assert args.command == "submit"
        assert args.request == "ADD"
        assert args.entity == "EMPLOYEE"

    def test_decide_collects_key_fields(self):
        args = build_parser().parse_args(
            ["decide", "ADDRESS", "--action", "reject", "--key", "EMP_ID=7", "--key", "ADDRESS_ID=2",
             "--remarks", "incomplete", "--actor", "bob"]
        )

        assert args.action == "REJECT"
        assert _parse_key(args.key) == {"EMP_ID": "7", "ADDRESS_ID": "2"}

    def test_unknown_action_rejected(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["decide", "EMPLOYEE", "--action", "MERGE", "--key", "EMP_ID=7", "--actor", "bob"])

    def test_submit_needs_a_record(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["submit", "EMPLOYEE", "--request", "ADD", "--actor", "alice"])


class TestMain:
    """Commands run against an injected orchestrator."""

    def test_submit_and_approve(self, orchestrator, capsys):
        code = main(
            ["submit", "EMPLOYEE", "--request", "ADD", "--actor", "alice",
             "--data", '{"EMP_ID": 7, "NAME": "Asha Rao"}'],
            orchestrator=orchestrator,
        )
        assert code == 0
        assert json.loads(capsys.readouterr().out)["status"] == "SUCCESS"

        code = main(
            ["decide", "EMPLOYEE", "--action", "APPROVE", "--key", "EMP_ID=7", "--actor", "bob"],
            orchestrator=orchestrator,
        )
        assert code == 0
        assert json.loads(capsys.readouterr().out)["status"] == "ACTION_SUCCESSFUL"

        code = main(["read", "EMPLOYEE", "--field", "EMP_ID", "--value", "7"], orchestrator=orchestrator)
        output = json.loads(capsys.readouterr().out)
        assert code == 0
        assert output["rows"][0]["NAME"] == "Asha Rao"
        assert output["rows"][0]["ADDRESS"] == []

    def test_failure_status_exits_one(self, orchestrator, capsys):
        code = main(["read-all", "BRANCH"], orchestrator=orchestrator)

        assert code == 1
        assert json.loads(capsys.readouterr().out)["status"] == "DATA_NOT_AVAILABLE"

    def test_validation_errors_printed(self, orchestrator, capsys):
        code = main(
            ["submit", "EMPLOYEE", "--request", "ADD", "--actor", "alice", "--data", '{"EMP_ID": 7}'],
            orchestrator=orchestrator,
        )

        assert code == 1
        assert json.loads(capsys.readouterr().out) == {"NAME": "NAME is required"}

    def test_record_from_file(self, orchestrator, tmp_path, capsys):
        record = tmp_path / "branch.json"
        record.write_text(json.dumps({"BRANCH_CODE": "PUN01", "CITY": "Pune"}))

        code = main(
            ["submit", "BRANCH", "--request", "ADD", "--actor", "alice", "--file", str(record)],
            orchestrator=orchestrator,
        )

        assert code == 0

    @pytest.mark.parametrize("argv", [
        ["submit", "EMPLOYEE", "--request", "ADD", "--actor", "alice", "--data", "not json"],
        ["submit", "EMPLOYEE", "--request", "ADD", "--actor", "alice", "--data", "[1, 2]"],
        ["decide", "EMPLOYEE", "--action", "APPROVE", "--key", "EMP_ID", "--actor", "bob"],
        ["read-all", "PAYROLL"],
    ])
    def test_bad_input_exits_two(self, orchestrator, argv, capsys):
        assert main(argv, orchestrator=orchestrator) == 2
        assert json.loads(capsys.readouterr().err.strip().splitlines()[-1])["status"] == "ERROR"

    def test_init_db(self, metadata_store, client, capsys):
        orchestrator = LifecycleOrchestrator(
            metadata_store, TransactionalStore(client, StatementBuilder(placeholder=client.placeholder))
        )

        code = main(["init-db", "--entity", "BRANCH"], orchestrator=orchestrator)

        assert code == 0
        output = json.loads(capsys.readouterr().out)
        assert output["relations"]["BRANCH"] == ["BRANCH_TEMP", "BRANCH_MASTER", "BRANCH_HIST"]
