# ==============================================
# CLI: Command Line Entry Point
# ==============================================
#
# PURPOSE:
#   Provides command-line access to the lifecycle operations.
#   Every command prints its OperationResult as JSON on stdout;
#   logs go to stderr.
#
# COMMANDS:
# ---------
# 1. Create the relations of every entity with metadata:
#    python -m makerchecker.cli init-db
#    python -m makerchecker.cli init-db --entity EMPLOYEE
#
# 2. Read authoritative data:
#    python -m makerchecker.cli read EMPLOYEE --field EMP_ID --value 7
#    python -m makerchecker.cli read-all EMPLOYEE
#
# 3. Maker submits a request:
#    python -m makerchecker.cli submit EMPLOYEE --request ADD --actor alice \
#        --data '{"EMP_ID": 7, "NAME": "Asha"}'
#
# 4. Checker decides:
#    python -m makerchecker.cli decide EMPLOYEE --action REJECT --key EMP_ID=7 \
#        --remarks incomplete --actor bob
#
# 5. Maker rectifies a request sent back by the checker:
#    python -m makerchecker.cli rectify EMPLOYEE --actor alice --file fix.json
#
# EXIT CODES:
# -----------
#   0 → success status, 1 → any other status, 2 → bad input or metadata
#
# ==============================================

import argparse
import json
import sys
from typing import Any, Dict, List, Optional

import structlog

from makerchecker.config import get_config
from makerchecker.errors import MakerCheckerError
from makerchecker.lifecycle import LifecycleOrchestrator
from makerchecker.log import configure_logging
from makerchecker.model.record import Action, Actor, RequestKind
from makerchecker.model.results import OperationResult

logger = structlog.get_logger(__name__)


def _parse_key(pairs: List[str]) -> Dict[str, str]:
    key = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep or not name:
            raise argparse.ArgumentTypeError(f"Key must look like FIELD=VALUE, got {pair!r}")
        key[name.strip()] = value
    return key


def _load_payload(args) -> Dict[str, Any]:
    if args.file:
        with open(args.file, "r") as f:
            payload = json.load(f)
    else:
        payload = json.loads(args.data)
    if not isinstance(payload, dict):
        raise ValueError("Record payload must be a JSON object")
    return payload


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="makerchecker",
        description="Metadata-driven maker-checker lifecycle",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    init_db = sub.add_parser("init-db", help="Create staging/authoritative/history relations")
    init_db.add_argument("--entity", action="append", default=[], help="Entity name (repeatable, default: all)")

    read = sub.add_parser("read", help="Read authoritative rows by a primary key field")
    read.add_argument("entity")
    read.add_argument("--field", required=True)
    read.add_argument("--value", required=True)

    read_all = sub.add_parser("read-all", help="Read every authoritative row")
    read_all.add_argument("entity")

    for name, help_text in (("submit", "Maker submits a request"), ("rectify", "Maker rectifies a request")):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("entity")
        cmd.add_argument("--actor", required=True)
        source = cmd.add_mutually_exclusive_group(required=True)
        source.add_argument("--data", help="Record as a JSON object")
        source.add_argument("--file", help="Path to a JSON file holding the record")
        if name == "submit":
            cmd.add_argument("--request", required=True, type=str.upper,
                             choices=[k.value for k in RequestKind])

    decide = sub.add_parser("decide", help="Checker approves, rejects or sends back a request")
    decide.add_argument("entity")
    decide.add_argument("--action", required=True, type=str.upper, choices=[a.value for a in Action])
    decide.add_argument("--key", action="append", required=True, metavar="FIELD=VALUE")
    decide.add_argument("--remarks")
    decide.add_argument("--actor", required=True)

    return parser


def run(args, orchestrator: LifecycleOrchestrator) -> OperationResult:
    """Dispatch parsed arguments to the orchestrator."""
    if args.command == "read":
        return orchestrator.fetch_by_key(args.field, args.value, args.entity)

    if args.command == "read-all":
        return orchestrator.fetch_all(args.entity)

    if args.command == "submit":
        return orchestrator.submit(_load_payload(args), args.entity, RequestKind.parse(args.request), Actor(args.actor))

    if args.command == "decide":
        return orchestrator.decide(
            args.entity, Action.parse(args.action), _parse_key(args.key), args.remarks, Actor(args.actor)
        )

    if args.command == "rectify":
        return orchestrator.rectify(_load_payload(args), args.entity, Actor(args.actor))

    raise ValueError(f"Unknown command: {args.command}")


def init_db(entity_names: List[str], orchestrator: LifecycleOrchestrator) -> Dict[str, Any]:
    names = entity_names or orchestrator.metadata.entity_names()
    created = {}
    for name in names:
        entity = orchestrator.metadata.schema(name)
        created[name] = orchestrator.store.ensure_relations(entity)
    return {"status": "SUCCESS", "relations": created}


def main(argv: Optional[List[str]] = None, orchestrator: Optional[LifecycleOrchestrator] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    config = get_config()
    configure_logging(json_output=config.logging.json_output, level=config.logging.level)
    orchestrator = orchestrator or LifecycleOrchestrator.from_config(config)

    try:
        if args.command == "init-db":
            output = init_db(args.entity, orchestrator)
            ok = True
        else:
            result = run(args, orchestrator)
            output = result.to_dict()
            ok = result.ok
    except (MakerCheckerError, ValueError, argparse.ArgumentTypeError, OSError) as e:
        logger.error("command_failed", command=args.command, error=str(e))
        print(json.dumps({"status": "ERROR", "message": str(e)}), file=sys.stderr)
        return 2

    print(json.dumps(output, indent=2, default=str))
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
