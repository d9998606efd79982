#!/usr/bin/env python3
"""
Surface Check - CLI Interface

Passive attack-surface quick check for one or more domains.
"""

import argparse
import json
import sys

from surfacecheck import __version__
from surfacecheck.core.config import Config
from surfacecheck.core.validation import validate_domain
from surfacecheck.scanner import SurfaceScanner


BAND_MARKERS = {
    "green": "🟢",
    "amber": "🟡",
    "red": "🔴",
    "gray": "⚪",
}


def print_banner():
    """Print application banner."""
    banner = f"""
    ╔═══════════════════════════════════════════════════════════╗
    ║           Surface Check v{__version__:<33}║
    ║        Passive Attack-Surface Risk Check                  ║
    ╚═══════════════════════════════════════════════════════════╝
    """
    print(banner)


def print_report(report):
    """Print one verdict report to console."""
    print("\n" + "=" * 60)
    print(f"{report.domain}: {report.overall_verdict.value.upper()} "
          f"(pressure {report.pressure.value}, score {report.risk_total})")
    print("=" * 60)

    for signal in report.signals:
        marker = BAND_MARKERS.get(signal.band.value, " ")
        print(f"  {marker} {signal.title:<28} {signal.teaser} [{signal.confidence.value}]")

    if report.locked_checks:
        print(f"\nDeeper checks not run: {', '.join(report.locked_checks)}")


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog="surfacecheck",
        description="Surface Check - Passive Attack-Surface Risk Check",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Check a single domain
  python cli.py --domain example.com

  # Check several domains, JSON output
  python cli.py -d example.com -d example.org --json

  # Check domains from a file
  python cli.py --input domains.txt

  # Use custom config file
  python cli.py --domain example.com --config custom_config.yaml
        """
    )

    # Input options
    input_group = parser.add_argument_group("Input Options")
    input_group.add_argument(
        "-d", "--domain",
        action="append",
        dest="domains",
        metavar="DOMAIN",
        help="Domain to check (can be specified multiple times)",
    )
    input_group.add_argument(
        "-i", "--input",
        dest="input_file",
        metavar="FILE",
        help="File containing domains to check (one per line)",
    )

    # Output options
    output_group = parser.add_argument_group("Output Options")
    output_group.add_argument(
        "--json",
        action="store_true",
        help="Print reports as JSON",
    )

    # Configuration options
    config_group = parser.add_argument_group("Configuration")
    config_group.add_argument(
        "-c", "--config",
        dest="config_file",
        metavar="FILE",
        help="Path to config.yaml file",
    )
    config_group.add_argument(
        "--env",
        dest="env_file",
        metavar="FILE",
        help="Path to .env.local file with API keys",
    )
    config_group.add_argument(
        "--skip",
        action="append",
        default=[],
        metavar="CHECK",
        help="Disable a check by name (can be specified multiple times)",
    )

    # General options
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress banner",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"Surface Check v{__version__}",
    )

    return parser


def read_domains(args) -> list:
    domains = list(args.domains or [])
    if args.input_file:
        with open(args.input_file, "r", encoding="utf-8") as f:
            domains.extend(
                line.strip()
                for line in f
                if line.strip() and not line.startswith("#")
            )
    # Keep first-seen order
    return list(dict.fromkeys(domains))


def main():
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()

    if not args.domains and not args.input_file:
        parser.error("Please specify at least one domain (-d) or input file (-i)")

    if not args.quiet and not args.json:
        print_banner()

    try:
        config = Config(
            config_path=args.config_file,
            env_path=args.env_file,
        )

        for check_name in args.skip:
            config.set(f"modules.{check_name}.enabled", False)

        if args.verbose:
            config.set("logging.level", "DEBUG")

        scanner = SurfaceScanner(config=config)

        reports = []
        invalid = 0
        for domain in read_domains(args):
            is_valid, message = validate_domain(domain)
            if not is_valid:
                invalid += 1
                print(f" Skipping {domain!r}: {message}", file=sys.stderr)
                continue
            reports.append(scanner.assess(domain))

        if args.json:
            print(json.dumps([r.to_dict() for r in reports], indent=2))
        else:
            for report in reports:
                print_report(report)
            print()

        # Exit with appropriate code
        if any(r.overall_verdict.value == "risk" for r in reports):
            sys.exit(2)  # At least one domain at risk
        elif invalid:
            sys.exit(1)  # Some input was rejected
        else:
            sys.exit(0)

    except FileNotFoundError as e:
        print(f" Error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\n\n Check interrupted by user")
        sys.exit(130)
    except Exception as e:
        print(f" Unexpected error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
