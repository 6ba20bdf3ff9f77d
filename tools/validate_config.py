#!/usr/bin/env python3
"""
Router settings validator

Loads each settings file the way BackrunRouter.from_settings would (without
environment overrides) and reports schema errors and risky values.
"""

import sys
import argparse
import json
from pathlib import Path
from typing import List, Dict, Any, Optional

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from backrun_router.config_loader import load_router_settings
from backrun_router.config_schema import RouterSettings
from backrun_router.exceptions import ConfigurationError

HIGH_HOP_LIMIT = 16


def settings_warnings(settings: RouterSettings) -> List[str]:
    """Values that pass the schema but are probably not what the operator meant."""
    found = []
    if settings.default_admin_share_bps == 0:
        found.append(
            "default_admin_share_bps is 0 - the default config pays everything to the beneficiary"
        )
    if settings.max_route_hops > HIGH_HOP_LIMIT:
        found.append(f"max_route_hops is high ({settings.max_route_hops})")
    for config_id, config in sorted(settings.revenue_configs.items()):
        if config.dust_share_bps == 0:
            found.append(
                f"{config_id}: dust_share_bps is 0 - the dust recipient still receives rounding remainders"
            )
        if len(set(config.recipients)) != len(config.recipients):
            found.append(f"{config_id}: recipients repeat")
    return found


def schema_errors(error: ConfigurationError) -> List[str]:
    """Headline plus one ``location: message`` line per pydantic error."""
    lines = [str(error).splitlines()[0]]
    for item in error.details.get("errors", []):
        location = ".".join(str(part) for part in item.get("loc", ()))
        lines.append(f"{location}: {item.get('msg')}")
    return lines


def check_settings_file(path: Path, verbose: bool = False) -> Dict[str, Any]:
    """Validate one settings file into a JSON-friendly report."""
    report: Dict[str, Any] = {"file": str(path), "valid": False, "errors": [], "warnings": []}
    try:
        settings = load_router_settings(path, use_env=False)
    except ConfigurationError as e:
        report["errors"] = schema_errors(e)
        report["config"] = None
        return report

    report["valid"] = True
    report["warnings"] = settings_warnings(settings)
    report["config"] = settings.model_dump() if verbose else None
    return report


def discover_settings(directory: Path, pattern: str) -> List[Path]:
    """Settings files under ``directory``; the default pattern also picks up ``*.yml``."""
    if not directory.is_dir():
        return []
    patterns = {pattern, "*.yml"} if pattern == "*.yaml" else {pattern}
    found = {p for glob in patterns for p in directory.rglob(glob) if p.is_file()}
    return sorted(found)


def summary_lines(config: Dict[str, Any]) -> List[str]:
    return [
        "  Settings summary:",
        f"    - Admin: {config['admin']}",
        f"    - Default admin share: {config['default_admin_share_bps']} bps",
        f"    - Max route hops: {config['max_route_hops']}",
        f"    - Revenue configs: {len(config['revenue_configs'])}",
    ]


def render_reports(reports: List[Dict[str, Any]], verbose: bool = False) -> str:
    valid = sum(1 for r in reports if r["valid"])
    lines = [
        "",
        "=== Router Settings Validation Results ===",
        f"Total files: {len(reports)}",
        f"Valid files: {valid}",
        f"Invalid files: {len(reports) - valid}",
    ]
    for report in reports:
        lines.append("")
        lines.append(f"{'✓ VALID' if report['valid'] else '✗ INVALID'}: {report['file']}")
        for title, key in (("Errors", "errors"), ("Warnings", "warnings")):
            if report[key]:
                lines.append(f"  {title}:")
                lines.extend(f"    - {entry}" for entry in report[key])
        if verbose and report["config"]:
            lines.extend(summary_lines(report["config"]))

    lines.append("")
    if valid == len(reports):
        lines.append(f"Validation complete: {valid}/{len(reports)} settings files valid")
    else:
        lines.append(
            f"Validation failed: {len(reports) - valid} invalid settings file(s) found"
        )
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate backrun router settings files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python tools/validate_config.py configs/router.example.yaml
  python tools/validate_config.py --directory configs/ --json
        """,
    )
    parser.add_argument("config_files", nargs="*", help="Settings file(s)")
    parser.add_argument("--directory", "-d", type=Path, help="Search a directory instead")
    parser.add_argument(
        "--pattern", "-p", default="*.yaml", help="Glob used with --directory (default: *.yaml)"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Summarize valid files")
    parser.add_argument("--json", "-j", action="store_true", help="Print reports as JSON")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Exit status is 1 when any file is invalid or nothing was given to check."""
    args = build_parser().parse_args(argv)

    if args.config_files and args.directory is not None:
        print("Error: Cannot combine config files with --directory")
        return 1
    if args.directory is not None:
        paths = discover_settings(args.directory, args.pattern)
        if not paths:
            print(f"No settings files found in {args.directory} matching '{args.pattern}'")
            return 1
    elif args.config_files:
        paths = [Path(f) for f in args.config_files]
    else:
        print("Error: Must specify either config files or directory")
        return 1

    reports = [check_settings_file(path, verbose=args.verbose) for path in paths]
    if args.json:
        print(json.dumps(reports, indent=2, default=str))
    else:
        print(render_reports(reports, verbose=args.verbose))

    return 0 if all(r["valid"] for r in reports) else 1


if __name__ == "__main__":
    sys.exit(main())
