"""CLI entry point for running API test suites and load runs."""

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Sequence
from dataclasses import asdict
from pathlib import Path
from typing import Any

from api_test_engine.analytics import AnalyticsEngine
from api_test_engine.client import ApiClient
from api_test_engine.config import ClientConfig, RetryPolicy
from api_test_engine.exporters import export_html, export_json
from api_test_engine.load_runner import ConcurrentLoadRunner, LoadProfile
from api_test_engine.orchestrator import CaseResult, SuiteOrchestrator
from api_test_engine.recorder import ExecutionRecorder
from api_test_engine.suite_loader import load_suite

STATUS_SYMBOLS = {
    "success": "✓",
    "failure": "✗",
    "error": "!",
}


def log_results_summary(log: logging.Logger, case_results: Sequence[CaseResult]) -> None:
    """Log a formatted summary of case results."""
    log.info("=" * 80)
    log.info("Test Results Summary:")
    log.info("=" * 80)

    for case_result in case_results:
        symbol = STATUS_SYMBOLS.get(case_result.status, "?")
        response_time = case_result.result.response_time if case_result.result else 0
        log.info(
            "%s %s [%s]: %s (%dms)",
            symbol,
            case_result.case_name,
            case_result.category,
            case_result.status,
            response_time,
        )
        if case_result.message:
            log.info("  Message: %s", case_result.message)


def format_output(case_results: Sequence[CaseResult]) -> dict[str, Any]:
    """Format case results for JSON output."""
    results = [
        {
            "name": case_result.case_name,
            "category": case_result.category,
            "status": case_result.status,
            "status_code": case_result.result.status_code if case_result.result else None,
            "response_time": (
                case_result.result.response_time if case_result.result else None
            ),
            "attempts": case_result.result.attempts if case_result.result else 0,
            "message": case_result.message,
        }
        for case_result in case_results
    ]

    return {
        "total": len(results),
        "passed": sum(1 for r in results if r["status"] == "success"),
        "failed": sum(1 for r in results if r["status"] == "failure"),
        "errors": sum(1 for r in results if r["status"] == "error"),
        "results": results,
    }


async def run(
    suite_path: Path,
    client_config_json: str,
    retries: int = 2,
    report_json: Path | None = None,
    report_html: Path | None = None,
) -> int:
    """Run a test suite and return exit code."""
    log = logging.getLogger("api_test_engine")

    config = ClientConfig(**json.loads(client_config_json))

    log.info("Loading suite: %s", suite_path)
    suite = await load_suite(suite_path)

    if not suite.cases:
        log.info("No test cases in suite")
        print(json.dumps(format_output([])))
        return 0

    recorder = ExecutionRecorder()
    async with ApiClient.from_config(config) as client:
        orchestrator = SuiteOrchestrator(
            client=client,
            recorder=recorder,
            retry_policy=RetryPolicy(max_retries=retries),
        )
        case_results = await orchestrator.run_suite(suite)

    log_results_summary(log, case_results)

    report = AnalyticsEngine(recorder=recorder).generate_report()
    if report_json is not None:
        export_json(report, report_json)
    if report_html is not None:
        export_html(report, report_html)

    print(json.dumps(format_output(case_results), indent=2))

    return 0 if all(case_result.passed for case_result in case_results) else 1


async def run_load(
    client_config_json: str,
    method: str,
    path: str,
    profile: LoadProfile,
) -> int:
    """Run a load profile against one endpoint and print the metrics."""
    config = ClientConfig(**json.loads(client_config_json))

    async with ApiClient.from_config(config) as client:
        runner = ConcurrentLoadRunner(issue_request=client.issuer(method, path))
        metrics = await runner.run(profile)

    print(json.dumps(asdict(metrics), indent=2))
    return 0


def _non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {number}")
    return number


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate REST API responses and report test analytics"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    suite_parser = subparsers.add_parser("run", help="Run a YAML test suite")
    suite_parser.add_argument(
        "--suite", type=Path, required=True, help="Path to the suite YAML file"
    )
    suite_parser.add_argument(
        "--client-config",
        required=True,
        help="JSON configuration for the API client",
    )
    suite_parser.add_argument(
        "--retries",
        type=_non_negative_int,
        default=2,
        help="Maximum retries of a failed case",
    )
    suite_parser.add_argument(
        "--report-json", type=Path, default=None, help="Write the report as JSON"
    )
    suite_parser.add_argument(
        "--report-html", type=Path, default=None, help="Write an HTML dashboard"
    )

    load_parser = subparsers.add_parser("load", help="Run a concurrent load test")
    load_parser.add_argument(
        "--client-config",
        required=True,
        help="JSON configuration for the API client",
    )
    load_parser.add_argument("--method", default="GET", help="HTTP method")
    load_parser.add_argument("--path", required=True, help="Request path")
    load_parser.add_argument("--users", type=_positive_int, default=10)
    load_parser.add_argument("--requests-per-user", type=_positive_int, default=5)
    load_parser.add_argument(
        "--duration",
        type=float,
        default=None,
        help="Endurance mode: seconds each user keeps sending requests",
    )
    load_parser.add_argument(
        "--interval", type=float, default=0.0, help="Seconds between requests"
    )
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    if args.command == "load":
        coroutine = run_load(
            client_config_json=args.client_config,
            method=args.method,
            path=args.path,
            profile=LoadProfile(
                users=args.users,
                requests_per_user=args.requests_per_user,
                duration=args.duration,
                request_interval=args.interval,
            ),
        )
    else:
        coroutine = run(
            suite_path=args.suite,
            client_config_json=args.client_config,
            retries=args.retries,
            report_json=args.report_json,
            report_html=args.report_html,
        )

    sys.exit(asyncio.run(coroutine))


if __name__ == "__main__":  # pragma: no cover
    main()
