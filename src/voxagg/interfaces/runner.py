"""Run aggregation workflows.

This module consolidates the TOML config loading, input reading, output
writing and logging set-up around :func:`~voxagg.aggregation.aggregate_volumes`.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

try:  # Python 3.11+
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - fallback for older environments
    import tomli as tomllib  # type: ignore[import]

from voxagg.aggregation.pipeline import aggregate_volumes
from voxagg.interfaces.models import AggregationConfig, AggregationOutput
from voxagg.interfaces.utils import (
    _as_list,
    _image_stem,
    _parse_bool,
    _parse_log_level,
    _parse_padding,
    summary_table,
    write_aggregation_sidecar,
)
from voxagg.metrics.volume import AggregationMode, parse_aggregation_mode
from voxagg.preprocessing.normalization import parse_normalization_mode
from voxagg.utils.image import load_volume, save_volume

LOGGER = logging.getLogger(__name__)


def _option(args: argparse.Namespace, data: dict[str, object], name: str, default: object = None) -> object:
    """Return a CLI value if given, else the TOML value, else *default*."""
    value = getattr(args, name, None)
    if value is not None:
        return value
    return data.get(name, default)


def load_config(args: argparse.Namespace) -> AggregationConfig:
    """Parse a TOML configuration file and override with CLI arguments.

    The configuration accepts the following keys, all optional when given on
    the command line instead:

    - ``mode``: Aggregation function name (e.g. ``mean``, ``gini``).
    - ``inputs``: List of input image paths.
    - ``output``: Output image path.
    - ``normalization``: ``none``, ``mean``, ``median``, ``zscore`` or ``unit``.
    - ``padding``: Background value of the inputs.
    - ``alpha``, ``bins``, ``parzen``, ``intersection``: Aggregation options.
    - ``n_jobs``: Number of worker processes.
    - ``force``: Overwrite an existing output.
    - ``summary``: Write a per-input TSV summary next to the output.
    - ``log_level``: Logging verbosity (e.g., ``INFO``, ``DEBUG``).

    Parameters
    ----------
    args
        Parsed CLI arguments.

    Returns
    -------
    AggregationConfig
        The merged configuration.

    Raises
    ------
    ValueError
        If the aggregation mode, the inputs or the output are missing, or a
        value cannot be parsed.
    """
    data: dict[str, object] = {}
    config_path = getattr(args, "config", None)
    if config_path:
        with Path(config_path).open("rb") as f:
            data = tomllib.load(f)

    mode_value = _option(args, data, "mode")
    if not mode_value:
        raise ValueError("An aggregation mode is required.")
    inputs = getattr(args, "inputs", None) or _as_list(data.get("inputs")) or []
    output_value = _option(args, data, "output")
    if not output_value:
        raise ValueError("Option --output is required!")

    return AggregationConfig(
        mode=parse_aggregation_mode(str(mode_value)),
        inputs=[Path(str(path)).expanduser().resolve() for path in inputs],
        output=Path(str(output_value)).expanduser().resolve(),
        normalization=parse_normalization_mode(_option(args, data, "normalization")),
        padding=_parse_padding(_option(args, data, "padding")),
        alpha=float(_option(args, data, "alpha", 0.0)),
        bins=int(_option(args, data, "bins", 64)),
        parzen=_parse_bool(_option(args, data, "parzen", False)),
        intersection=_parse_bool(_option(args, data, "intersection", False)),
        n_jobs=int(_option(args, data, "n_jobs", 1)),
        force=bool(getattr(args, "force", False)) or _parse_bool(data.get("force", False)),
        write_summary=bool(getattr(args, "summary", False)) or _parse_bool(data.get("summary", False)),
        log_level=_parse_log_level(_option(args, data, "log_level")),
    )


def _summary_path(image_path: Path) -> Path:
    return image_path.with_name(f"{_image_stem(image_path)}_summary.tsv")


def run_aggregation(config: AggregationConfig) -> AggregationOutput:
    """Execute the aggregation workflow from a parsed config.

    Parameters
    ----------
    config
        Workflow configuration.

    Returns
    -------
    AggregationOutput
        The aggregation result and the paths of the written files.

    Raises
    ------
    FileExistsError
        If the output exists and ``config.force`` is not set.
    """
    logging.basicConfig(level=config.log_level, format="%(asctime)s [%(levelname)s] %(message)s")

    if config.output.exists() and not config.force:
        raise FileExistsError(f"Output {config.output} exists; use --force to overwrite it.")

    LOGGER.info("Reading %d images", len(config.inputs))
    volumes = [load_volume(path) for path in config.inputs]

    result = aggregate_volumes(
        config.mode,
        volumes,
        normalization=config.normalization,
        padding=config.padding,
        alpha=config.alpha,
        bins=config.bins,
        parzen=config.parzen,
        intersection=config.intersection,
        n_jobs=config.n_jobs,
    )

    LOGGER.info("Writing result to %s", config.output)
    image_path = save_volume(result.output, config.output)
    sidecar_path = write_aggregation_sidecar(
        image_path=image_path,
        inputs=config.inputs,
        result=result,
        padding=config.padding,
        alpha=config.alpha if config.mode is AggregationMode.ENTROPY_INDEX else None,
        bins=config.bins if config.mode is AggregationMode.ENTROPY else None,
        parzen=config.parzen if config.mode is AggregationMode.ENTROPY else None,
        intersection=config.intersection,
    )

    summary = None
    summary_path = None
    if config.write_summary:
        summary = summary_table(result, config.inputs)
        summary_path = _summary_path(image_path)
        summary.to_csv(summary_path, sep="\t", index=False)
        LOGGER.debug("Wrote input summary to %s", summary_path)

    return AggregationOutput(
        result=result,
        image_path=image_path,
        sidecar_path=sidecar_path,
        summary_path=summary_path,
        summary=summary,
    )
