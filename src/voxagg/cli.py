"""Command line entry point for voxagg.

Usage::

    voxagg <mode> <image> <image> [<image> ...] --output <file> \\
        [--normalization {none,mean,median,zscore,unit} | --normalize] \\
        [--padding VALUE] [--alpha VALUE] [--bins N] \\
        [--[no-]parzen] [--[no-]intersection] \\
        [--config CONFIG.toml] [--n-jobs N] [--force] [--summary]

Options may appear before, between or after the input images.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from voxagg.interfaces.runner import load_config, run_aggregation

LOGGER = logging.getLogger(__name__)

_MODE_HELP = """\
Name of function used to aggregate input values:
  mean, mu, average, avg      Mean intensity.
  median                      Median intensity.
  sd, stdev, stddev, sigma    Standard deviation.
  gini, gini-coefficient      Gini coefficient in [0, 1].
  theil, theil-index          Theil index, equivalent to GE(1).
  entropy-index, ge           Generalized entropy index (GE), see --alpha.
  entropy, shannon-entropy    Shannon entropy, see --bins and --parzen.
"""


def build_arg_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="voxagg",
        description=(
            "Aggregate multiple co-registered input images into a single output image. "
            "At each voxel, the selected function is evaluated over the intensities of "
            "all input images. The input images have to be defined on the same grid."
        ),
        epilog=_MODE_HELP,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "mode",
        nargs="?",
        help="Aggregation function (see below). May instead be given in --config.",
    )
    parser.add_argument(
        "inputs",
        nargs="*",
        type=Path,
        help="File names of at least two input intensity images.",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Voxel-wise aggregate image.",
    )
    parser.add_argument(
        "--normalization",
        help=(
            "Input intensity normalization: 'none' (default), 'mean' (divide by mean foreground "
            "value), 'median' (divide by median foreground value), 'zscore' (subtract mean and "
            "divide by standard deviation) or 'unit' (rescale to [0, 1])."
        ),
    )
    parser.add_argument(
        "--normalize",
        dest="normalization",
        action="store_const",
        const="zscore",
        help="Shorthand for --normalization zscore.",
    )
    parser.add_argument(
        "--padding",
        type=float,
        help="Background value of voxels in the input images to be ignored. Default: NaN.",
    )
    parser.add_argument(
        "--alpha",
        type=float,
        help=(
            "Alpha of the generalized entropy index: 0 is the mean log deviation, 1 the Theil "
            "index and 2 half the squared coefficient of variation. Default: 0."
        ),
    )
    parser.add_argument(
        "--bins",
        type=int,
        help="Number of bins used for histogram based aggregation functions. Default: 64.",
    )
    parser.add_argument(
        "--parzen",
        action=argparse.BooleanOptionalAction,
        help="Use Parzen window based histogram estimation. Default: off.",
    )
    parser.add_argument(
        "--intersection",
        action=argparse.BooleanOptionalAction,
        help=(
            "Only aggregate voxels at which no input value equals the padding value. By default, "
            "only voxels at which all input values equal the padding value are excluded."
        ),
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to a TOML configuration file.",
    )
    parser.add_argument(
        "--n-jobs",
        type=int,
        dest="n_jobs",
        help="Number of processes used for the voxel-wise aggregation. Default: 1.",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing output image.",
    )
    parser.add_argument(
        "--summary",
        action="store_true",
        help="Write a TSV table of per-input foreground counts and normalization parameters.",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        help="Logging verbosity. Default: INFO.",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Entry point for CLI execution."""
    argv = list(argv) if argv is not None else sys.argv[1:]

    if not argv:
        build_arg_parser().print_help()
        return 1

    args = build_arg_parser().parse_intermixed_args(argv)

    try:
        config = load_config(args)
        run_aggregation(config)
    except Exception:
        LOGGER.exception("Aggregation failed")
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
