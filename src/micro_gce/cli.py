"""Command-line interface for the micro-gce client."""

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Dict, Optional

from micro_gce.compute import Autoscaler, Compute, Operation
from micro_gce.core.config import ComputeConfig, load_config
from micro_gce.core.result import ApiResult


def setup_logging(level: str = "INFO") -> None:
    """Configure logging."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _describe(value: Any) -> Any:
    """Turn a result value into something JSON can print."""
    if isinstance(value, (Autoscaler, Operation)):
        return {"name": value.name, "metadata": value.metadata}
    if isinstance(value, list):
        return [_describe(v) for v in value]
    return value


def _report(result: ApiResult) -> int:
    if not result.ok:
        print(f"Error: {result.error}", file=sys.stderr)
        if result.api_response:
            print(json.dumps(result.api_response, indent=2), file=sys.stderr)
        return 1

    output: Dict[str, Any] = {"result": _describe(result.value)}
    if result.operation is not None:
        output["operation"] = _describe(result.operation)
    if result.next_query is not None:
        output["next_query"] = result.next_query
    print(json.dumps(output, indent=2))
    return 0


def _load_json(text: Optional[str]) -> Dict[str, Any]:
    if not text:
        return {}
    if text.startswith("@"):
        with open(text[1:], "r") as f:
            return json.load(f)
    return json.loads(text)


async def run_command(args: argparse.Namespace, config: ComputeConfig) -> int:
    """Run one parsed command against the API."""
    async with Compute(config) as compute:
        if args.command == "operation":
            scope = compute.zone(args.zone) if args.zone else compute
            operation = scope.operation(args.name)
            result = await operation.wait_for_completion(
                poll_interval=config.operation_poll_interval,
                timeout=config.operation_timeout,
            )
            return _report(result)

        if args.command == "autoscalers":
            if args.zone:
                result = await compute.zone(args.zone).get_autoscalers(_load_json(args.query))
            else:
                result = await compute.get_autoscalers(_load_json(args.query))
            return _report(result)

        zone = compute.zone(args.zone)
        autoscaler = zone.autoscaler(args.name)

        if args.action == "get":
            result = await autoscaler.get()
        elif args.action == "exists":
            result = await autoscaler.exists()
        elif args.action == "create":
            result = await autoscaler.create(_load_json(args.config_json))
        elif args.action == "delete":
            result = await autoscaler.delete()
        elif args.action == "set-metadata":
            result = await autoscaler.set_metadata(_load_json(args.metadata))
        else:
            raise ValueError(f"Unknown autoscaler action: {args.action}")

        operation = result.value if isinstance(result.value, Operation) else result.operation
        if result.ok and args.wait and operation is not None:
            result = await operation.wait_for_completion(
                poll_interval=config.operation_poll_interval,
                timeout=config.operation_timeout,
            )

        return _report(result)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="micro-gce - Manage Compute Engine autoscalers",
        prog="micro-gce",
    )
    parser.add_argument("--config", "-c", help="Path to configuration file")
    parser.add_argument("--project", "-p", help="Project ID (overrides configuration)")
    parser.add_argument("--log-level", default=None, help="Log level")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Autoscaler command
    autoscaler_parser = subparsers.add_parser("autoscaler", help="Manage one autoscaler")
    autoscaler_parser.add_argument(
        "action",
        choices=["get", "exists", "create", "delete", "set-metadata"],
        help="Action to perform",
    )
    autoscaler_parser.add_argument("name", help="Autoscaler name")
    autoscaler_parser.add_argument("--zone", "-z", required=True, help="Zone name")
    autoscaler_parser.add_argument(
        "--config-json",
        help="Create configuration as JSON, or @file.json",
    )
    autoscaler_parser.add_argument(
        "--metadata",
        help="Fields to update as JSON, or @file.json",
    )
    autoscaler_parser.add_argument(
        "--wait",
        action="store_true",
        help="Wait for the resulting operation to complete",
    )

    # Autoscalers command
    list_parser = subparsers.add_parser("autoscalers", help="List autoscalers")
    list_parser.add_argument("--zone", "-z", help="Zone name (default: all zones)")
    list_parser.add_argument("--query", help="Query parameters as JSON")

    # Operation command
    operation_parser = subparsers.add_parser("operation", help="Wait for an operation")
    operation_parser.add_argument("name", help="Operation name")
    operation_parser.add_argument("--zone", "-z", help="Zone name (default: global)")

    return parser


def main(argv: Optional[list] = None) -> None:
    """Main CLI entrypoint."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    config = load_config(args.config)
    if args.project:
        config.project_id = args.project

    setup_logging((args.log_level or config.log_level).upper())

    if not config.project_id:
        print("Error: no project configured (use --project or MICRO_GCE_PROJECT_ID)", file=sys.stderr)
        sys.exit(1)

    try:
        code = asyncio.run(run_command(args, config))
    except (ValueError, OSError) as e:
        # Bad JSON arguments, unreadable @files, missing create target.
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    sys.exit(code)


if __name__ == "__main__":
    main()
