import argparse
import json
import logging
import sys
from dataclasses import asdict

from rich.console import Console

from . import __version__
from .config import debug_from_env, endpoint_override, get_auth_token, load_config
from .errors import FileReadError, LabsValidatorError, RemoteRejection
from .exchange import ResultExchanger
from .log import setup_logging
from .render import print_rejection
from .session import Session
from .sources import build_trivy_payload, build_webconfig_payload
from .utils import b64url_token
from .verifier import TokenVerifier


logger = logging.getLogger(__name__)

# subcommand -> payload builder
SOURCES = {
    "trivy": build_trivy_payload,
    "webconfig-easy": build_webconfig_payload,
}


def _read_input(path):
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as exc:
        raise FileReadError("issue reading file - '{}'".format(exc)) from exc


def build_arg_parser():
    parser = argparse.ArgumentParser(
        prog="labs-validator",
        description="Submit scanner or config results to the labs validation service.",
    )

    parser.add_argument(
        "--version",
        action="version",
        version="labs-validator {}".format(__version__),
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug output (also enabled by DEBUG=TRUE).",
    )
    common.add_argument(
        "--config",
        help="Path to a JSON config file to override defaults.",
    )
    common.add_argument(
        "--output",
        choices=["text", "json"],
        default="text",
        help="Output format. Defaults to 'text'.",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="command")
    subparsers.required = True

    trivy = subparsers.add_parser(
        "trivy",
        parents=[common],
        help="Handle trivy output",
    )
    trivy.add_argument("--json", dest="input_file", required=True, help="Input JSON file")

    webconfig = subparsers.add_parser(
        "webconfig-easy",
        parents=[common],
        help="Handle a trivial web.config file",
    )
    webconfig.add_argument("--xml", dest="input_file", required=True, help="Input web.config XML file")

    return parser


def run_command(args):
    """
    Run one validation and return the success message (or None when the
    service sent back nothing to act on). Errors propagate.
    """
    build_payload = SOURCES[args.command]

    config = load_config(args.config)
    raw_data = _read_input(args.input_file)
    auth_token = get_auth_token()
    logger.debug("Found LABS_AUTH")

    verifier = TokenVerifier.from_provider(
        algorithms=config.get("algorithms"),
        leeway=config.get("leeway_seconds", 0),
    )

    with ResultExchanger(timeout=float(config.get("timeout_seconds", 30))) as exchanger:
        session = Session(
            auth_token,
            verifier=verifier,
            exchanger=exchanger,
            endpoint_override=endpoint_override(config),
        )
        session.resolve_callback()
        payload = build_payload(raw_data)
        session.exchange(payload)
        message = session.complete()

    if message is None:
        return None
    return {
        "message": message,
        "validation_url": session.validation_url,
        "token": b64url_token(session.response.result),
    }


def _print_json(data):
    json.dump(data, sys.stdout, indent=2, sort_keys=True)
    sys.stdout.write("\n")


def main(argv=None):
    parser = build_arg_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:
        if exc.code in (0, None):
            return 0
        return 1

    if args.debug or debug_from_env():
        setup_logging("DEBUG")
    else:
        setup_logging()

    try:
        outcome = run_command(args)
    except RemoteRejection as exc:
        if args.output == "json":
            findings = [asdict(f) for f in exc.findings or []]
            _print_json({"status": "rejected", "error": exc.message, "findings": findings})
        else:
            print_rejection(Console(), exc.message, exc.findings)
        return 1
    except LabsValidatorError as exc:
        print("Error: {}".format(exc), file=sys.stderr)
        return 1

    if outcome is None:
        return 0

    if args.output == "json":
        _print_json(
            {
                "status": "success",
                "validation_url": outcome["validation_url"],
                "token": outcome["token"],
            }
        )
    else:
        sys.stdout.write(outcome["message"])

    return 0


if __name__ == "__main__":
    sys.exit(main())
