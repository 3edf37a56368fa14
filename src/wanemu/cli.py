#!/usr/bin/env python3
"""
Command-line entry point for wanemu.

    wanemu serve --port 3000 --profiles profiles.yaml
    wanemu plan eth0 --latency 50 --jitter 10 --loss 2 --bandwidth 5000
    tc qdisc show | wanemu parse
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from .api import create_app
from .composer import build_apply_plan, build_clear_plan
from .exceptions import WanEmuError
from .parser import parse_qdisc_report
from .profile import load_profiles
from .runner import SSHRunner
from .sessions import SessionRegistry
from .state import ImpairmentState

logger = logging.getLogger("wanemu")


def cmd_serve(args) -> int:
    profiles = load_profiles(args.profiles) if args.profiles else {}
    sudo_prefix = () if args.no_sudo else ("sudo",)

    def connect(**kwargs):
        return SSHRunner.connect(sudo_prefix=sudo_prefix, **kwargs)

    registry = SessionRegistry(connect=connect, profiles=profiles)
    app = create_app(registry, static_dir=args.static_dir)

    logger.info(f"WAN emulation controller running on {args.host}:{args.port}")
    try:
        app.run(host=args.host, port=args.port, threaded=True)
    finally:
        registry.close_all()
    return 0


def cmd_plan(args) -> int:
    if args.clear:
        plan = build_clear_plan(args.interface)
    else:
        state = ImpairmentState(
            loss_pct=args.loss,
            latency_ms=args.latency,
            jitter_ms=args.jitter,
            bandwidth_kbit=args.bandwidth,
        )
        plan = build_apply_plan(args.interface, state)

    for line in plan.as_strings():
        print(line)
    return 0


def cmd_parse(args) -> int:
    text = Path(args.file).read_text() if args.file else sys.stdin.read()
    report = parse_qdisc_report(text)
    print(json.dumps({name: s.to_dict() for name, s in report.items()}, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Linux tc/netem WAN emulation controller"
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("WANEMU_LOG_LEVEL", "INFO"),
        help="Logging level (DEBUG shows every command run)"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="0.0.0.0", help="Address to bind")
    serve.add_argument(
        "--port",
        type=int,
        default=int(os.environ.get("PORT", 3000)),
        help="Port to listen on (default: $PORT or 3000)"
    )
    serve.add_argument(
        "--profiles",
        default=os.environ.get("WANEMU_PROFILES"),
        help="Path to impairment profiles YAML"
    )
    serve.add_argument(
        "--static-dir",
        default=os.environ.get("WANEMU_STATIC_DIR"),
        help="Front-end folder served at /"
    )
    serve.add_argument(
        "--no-sudo",
        action="store_true",
        help="Run tc without sudo (remote user is root)"
    )
    serve.set_defaults(func=cmd_serve)

    plan = sub.add_parser("plan", help="Print the tc commands for a desired state")
    plan.add_argument("interface", help="Interface name, e.g. eth0")
    plan.add_argument("--loss", type=float, default=0.0, help="Packet loss in percent")
    plan.add_argument("--latency", type=float, default=0.0, help="Delay in ms")
    plan.add_argument("--jitter", type=float, default=0.0, help="Jitter in ms")
    plan.add_argument("--bandwidth", type=int, default=0, help="Rate cap in kbit/s")
    plan.add_argument(
        "--clear",
        action="store_true",
        help="Print the plan that removes all impairments"
    )
    plan.set_defaults(func=cmd_plan)

    parse = sub.add_parser("parse", help="Parse `tc qdisc show` output as JSON")
    parse.add_argument("file", nargs="?", help="File to read (default: stdin)")
    parse.set_defaults(func=cmd_parse)

    return parser


def main(argv=None) -> int:
    """Main entry point."""
    load_dotenv()
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    try:
        return args.func(args)
    except WanEmuError as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
