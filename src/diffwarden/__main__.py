# SPDX-License-Identifier: MIT
"""Package entry point — run diffwarden via `python -m diffwarden`."""

import argparse
import logging

from diffwarden.scan import OUTPUT_FORMATS, main

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Advisory security scan of the lines added in a diff")
    parser.add_argument("--diff", dest="diff_path", default=None, help="Unified diff file (default: stdin)")
    parser.add_argument("--commit", dest="commit_sha", default=None, help="Reviewed commit SHA")
    parser.add_argument("--base", dest="base_commit_sha", default=None, help="Base commit SHA")
    parser.add_argument(
        "--format",
        dest="output_format",
        choices=OUTPUT_FORMATS,
        default=None,
        help="Output format (overrides DIFFWARDEN_FORMAT env var)",
    )
    parser.add_argument("--no-secrets", action="store_true", help="Disable the secrets detector")
    parser.add_argument(
        "--no-dangerous-functions",
        action="store_true",
        help="Disable the dangerous-function detector",
    )
    parser.add_argument("--parallel", action="store_true", help="Run detectors on a thread pool")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log detector activity")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    overrides: dict[str, bool] = {}
    if args.no_secrets:
        overrides["secrets"] = False
    if args.no_dangerous_functions:
        overrides["dangerous_functions"] = False

    main(
        diff_path=args.diff_path,
        commit_sha=args.commit_sha,
        base_commit_sha=args.base_commit_sha,
        output_format=args.output_format,
        detector_overrides=overrides,
        parallel=args.parallel,
    )
