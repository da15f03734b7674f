"""CLI entry point: run `rsbundle [--bin] [--crate-dir DIR]` or `python -m rsbundle`."""

import logging
import os
import sys
from pathlib import Path
from typing import List, Optional


def _configure_logging(verbose: bool) -> None:
    from .utils.config import DEFAULT_LOG_LEVEL, LOG_FORMAT, LOG_LEVEL_ENV_VAR

    level_name = "DEBUG" if verbose else os.environ.get(LOG_LEVEL_ENV_VAR, DEFAULT_LOG_LEVEL)
    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        level = logging.getLevelName(DEFAULT_LOG_LEVEL)
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)


def main(argv: Optional[List[str]] = None) -> int:
    import argparse
    from .compiler.driver import BundleDriver
    from .utils.config import BIN_ROOT_FILE, LIB_ROOT_FILE
    from .utils.io_utils import write_output_file

    parser = argparse.ArgumentParser(prog="rsbundle", description="Bundle a multi-file Rust crate into one source file.")
    parser.add_argument("--bin", action="store_true", help=f"Bundle the binary root ({BIN_ROOT_FILE}) instead of {LIB_ROOT_FILE}")
    parser.add_argument("--crate-dir", type=Path, default=Path("."), help="Crate directory (default: current directory)")
    parser.add_argument("--root", type=Path, default=None, help="Explicit crate root file (overrides --bin)")
    parser.add_argument("--prune", action="store_true", help="Drop modules unreachable from the crate root")
    parser.add_argument("-o", "--output", type=Path, default=None, help="Write the bundle here instead of stdout")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr")
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)

    if args.root is not None:
        root_file = args.root
    else:
        root_file = args.crate_dir / (BIN_ROOT_FILE if args.bin else LIB_ROOT_FILE)
    if not root_file.is_file():
        sys.stderr.write(f"rsbundle: error: crate root not found: {root_file}\n")
        return 1

    result = BundleDriver().bundle(root_file, prune=args.prune)
    if result.has_errors():
        sys.stderr.write(result.error.render() + "\n")
        return 1

    if args.output is not None:
        try:
            write_output_file(args.output, result.text)
        except OSError as e:
            sys.stderr.write(f"rsbundle: error: could not write {args.output}: {e}\n")
            return 1
    else:
        sys.stdout.write(result.text)
    return 0


if __name__ == "__main__":
    sys.exit(main())
