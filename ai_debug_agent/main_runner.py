"""
OpsMedic command line entry point.

    opsmedic debug -d "nginx returns 502" [-r user@host[:port]] [-i] [-s]
    opsmedic quick
"""
import sys
import argparse
from pathlib import Path

from .core import configure, get_logger, load_config, ConfigError
from .core.config import DEFAULT_INITIAL_COMMANDS, QUICK_CHECK_COMMANDS
from .modules.documentation import ReportConfig, ReportFormat, generate_report
from .modules.execution import CommandExecutor
from .modules.troubleshooting import DebugWorkflow, quick_check
from .utils import MissingCredentialsError, OpenAIProvider


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="opsmedic", description="A sysadmin assistant powered by LLMs")
    parser.add_argument("-c", "--config", help="Path to configuration file")
    parser.add_argument("--debug", action="store_true", help="Enable verbose logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    debug = subparsers.add_parser("debug", help="Debug host with targeted diagnostics and LLM analysis")
    debug.add_argument("-d", "--description", required=True, help="Description of the issue to debug")
    debug.add_argument("-i", "--interactive", action="store_true",
                       help="Ask for confirmation before each follow-up batch")
    debug.add_argument("-r", "--remote",
                       help="Execute commands on a remote host ('user@host[:port]') instead of locally")
    debug.add_argument("-s", "--sudo", action="store_true", help="Run all commands with sudo")
    debug.add_argument("--max-batches", type=int, help="Maximum number of command batches")
    debug.add_argument("--insecure-host-keys", action="store_true",
                       help="Accept any SSH host key without checking known_hosts")
    debug.add_argument("--format", choices=[f.value for f in ReportFormat],
                       help="Print a full session report in this format instead of the summary")
    debug.add_argument("-o", "--output", help="Write the report to this file")
    debug.add_argument("--include-output", action="store_true",
                       help="Include command output in the markdown report")

    subparsers.add_parser("quick", help="Run a quick local health check and analyze it")
    return parser


def _run_debug(args, config, provider, logger) -> int:
    overrides = {}
    if args.max_batches is not None:
        overrides["max_batches"] = args.max_batches
    if args.insecure_host_keys:
        overrides["strict_host_key_checking"] = False

    try:
        session_config = config.session_config(
            issue_description=args.description,
            initial_commands=list(DEFAULT_INITIAL_COMMANDS),
            remote=args.remote,
            use_sudo=args.sudo,
            interactive=args.interactive,
            **overrides
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    if not session_config.strict_host_key_checking and session_config.remote:
        logger.warning("SSH host key verification is disabled for this session")

    workflow = DebugWorkflow(provider, executor=CommandExecutor.from_config(session_config))
    session = workflow.run(session_config)

    if args.format or args.output:
        report_format = ReportFormat(args.format or ReportFormat.MARKDOWN.value)
        report = generate_report(session, ReportConfig(
            format=report_format,
            include_command_output=args.include_output,
            include_analysis_history=True,
        ))
        if args.output:
            Path(args.output).write_text(report, encoding="utf-8")
            print(f"Report written to {args.output}")
        else:
            print(report)
    elif session.summary:
        print(session.summary)
    return 0


def _run_quick(config, provider) -> int:
    executor = CommandExecutor(timeout=config.command_timeout, max_workers=config.max_workers)
    _, analysis = quick_check(list(QUICK_CHECK_COMMANDS), provider, executor=executor)
    print(analysis)
    return 0


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    configure("DEBUG" if args.debug else config.log_level)
    logger = get_logger(__name__)

    try:
        provider = OpenAIProvider.from_config(config)
    except MissingCredentialsError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    if args.command == "debug":
        return _run_debug(args, config, provider, logger)
    return _run_quick(config, provider)


if __name__ == "__main__":
    sys.exit(main())
