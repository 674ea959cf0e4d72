from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

import orjson

from .api import ApiState, call_api
from .errors import ConfigurationError, FreeslotError, ValidationError
from .logging import configure_logging
from .services.http import run_local_server

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Freeslot availability command line interface.")
    parser.add_argument("--offline", action="store_true", help="Interpret requests with the keyword parser only.")
    parser.add_argument("--log-level", default=None, help="Override FREESLOT_LOG_LEVEL.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    ask_parser = subparsers.add_parser("ask", help="Answer a free-text availability request.")
    ask_parser.add_argument("text")
    ask_parser.add_argument("--today", default=None, help="Anchor date for relative phrases (YYYY-MM-DD).")
    ask_parser.add_argument("--fallback", action="store_true", help="Skip the language model for this request.")

    query_parser = subparsers.add_parser("query", help="Run a structured availability query.")
    query_parser.add_argument("--intent", choices=("find_days", "find_slots", "suggest_times"), default="find_days")
    query_parser.add_argument("--start", required=True)
    query_parser.add_argument("--end", required=True)
    query_parser.add_argument("--time", dest="time_preference", choices=("morning", "afternoon", "evening", "any"))
    query_parser.add_argument("--duration", dest="slot_duration", choices=("1hour", "half-day", "full-day"))
    query_parser.add_argument("--count", dest="result_count", type=int)

    block_parser = subparsers.add_parser("block", help="Block a day, half a day, one slot or a date range.")
    block_parser.add_argument("day")
    block_parser.add_argument("--until", default=None, help="Block every day through this date.")
    block_parser.add_argument("--half", choices=("am", "pm"))
    block_parser.add_argument("--slot", default=None, help="Hourly slot label such as 14:00.")
    block_parser.add_argument("--label", default=None, help="Event label stored with the block.")

    unblock_parser = subparsers.add_parser("unblock", help="Release a day, half a day or one slot.")
    unblock_parser.add_argument("day")
    unblock_parser.add_argument("--half", choices=("am", "pm"))
    unblock_parser.add_argument("--slot", default=None)

    export_parser = subparsers.add_parser("export", help="Write the versioned export envelope.")
    export_parser.add_argument("--output", type=Path, default=None, help="File to write; stdout when omitted.")

    import_parser = subparsers.add_parser("import", help="Validate and import an exported file.")
    import_parser.add_argument("file", type=Path)
    import_parser.add_argument("--merge", action="store_true", help="Merge into existing data instead of replacing.")

    api_parser = subparsers.add_parser("api", help="Start the FastAPI server exposing the registered tools.")
    api_parser.add_argument("--host", default="127.0.0.1")
    api_parser.add_argument("--port", type=int, default=8000)

    return parser


def _emit(payload: Any) -> None:
    sys.stdout.write(orjson.dumps(payload, option=orjson.OPT_INDENT_2).decode("utf-8") + "\n")


def _block(state: ApiState, args: argparse.Namespace) -> Dict[str, Any]:
    if args.until:
        return call_api(
            "block_date_range", state, start=args.day, end=args.until, half=args.half, event_label=args.label
        )
    if args.slot:
        return call_api("set_slot", state, day=args.day, slot=args.slot, occupied=True)
    if args.half:
        return call_api("block_half_day", state, day=args.day, half=args.half, event_label=args.label)
    return call_api("block_day", state, day=args.day, event_label=args.label)


def _unblock(state: ApiState, args: argparse.Namespace) -> Dict[str, Any]:
    if args.slot:
        return call_api("set_slot", state, day=args.day, slot=args.slot, occupied=False)
    if args.half:
        return call_api("unblock_half_day", state, day=args.day, half=args.half)
    return call_api("unblock_day", state, day=args.day)


def _query_payload(args: argparse.Namespace) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "intent": args.intent,
        "date_range": {"start": args.start, "end": args.end},
    }
    for name in ("time_preference", "slot_duration", "result_count"):
        value = getattr(args, name)
        if value is not None:
            payload[name] = value
    return payload


def run(args: argparse.Namespace, state: ApiState) -> Optional[Dict[str, Any]]:
    if args.command == "ask":
        return call_api("ask_availability", state, text=args.text, today=args.today, force_fallback=args.fallback)
    if args.command == "query":
        return call_api("execute_query", state, query=_query_payload(args))
    if args.command == "block":
        return _block(state, args)
    if args.command == "unblock":
        return _unblock(state, args)
    if args.command == "export":
        exported = call_api("export_data", state)
        if args.output is None:
            return exported
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_bytes(orjson.dumps(exported, option=orjson.OPT_INDENT_2))
        return {"written": str(args.output)}
    if args.command == "import":
        try:
            raw = args.file.read_bytes()
        except OSError as exc:
            raise ValidationError.for_field("file", f"cannot read {args.file}: {exc.strerror}") from exc
        try:
            payload = orjson.loads(raw)
        except orjson.JSONDecodeError as exc:
            raise ValidationError.for_field("file", f"{args.file} is not valid JSON") from exc
        return call_api("import_data", state, payload=payload, merge=args.merge)
    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    logger.info("Freeslot CLI starting")

    try:
        state = ApiState.from_settings(offline=True if args.offline else None)
    except ConfigurationError as exc:
        parser.exit(2, f"freeslot: {exc}\n")

    if args.command == "api":
        run_local_server(host=args.host, port=args.port, state=state)
        return 0

    try:
        result = run(args, state)
    except ValidationError as exc:
        _emit(exc.to_dict())
        return 1
    except FreeslotError as exc:
        logger.error("Command %s failed: %s", args.command, exc)
        _emit({"error": str(exc)})
        return 1
    _emit(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
