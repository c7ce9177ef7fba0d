"""Extract flat clusters from a single-linkage hierarchy over a CSV of points."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import pandas as pd

from dendrocut.config import (
    DEFAULT_LOG_LEVEL,
    ClusterCountConfig,
    HeightCutConfig,
    StabilityConfig,
    get_log_level,
    get_stability_config,
)
from dendrocut.errors import ExtractionError, InvalidConfigurationError
from dendrocut.extraction import extract
from dendrocut.hierarchy import pointer_hierarchy_from_points
from dendrocut.logging_utils import setup_logging
from dendrocut.profiling import PerformanceReport, profile_phase

logger = logging.getLogger("extract_clusters")

EXIT_OK = 0
EXIT_EXTRACTION_ERROR = 2


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Extract flat clusters from a single-linkage dendrogram.")
    parser.add_argument("input", type=Path, help="CSV file with one point per row")
    parser.add_argument("--id-column", default=None, help="Column holding object names (excluded from coordinates)")
    parser.add_argument("--metric", default="euclidean", help="Distance metric passed to scipy (default euclidean)")
    policy = parser.add_mutually_exclusive_group()
    policy.add_argument("--height", type=float, default=None, help="Cut the dendrogram at this merge height")
    policy.add_argument("--n-clusters", type=int, default=None, help="Cut the dendrogram into this many clusters")
    policy.add_argument(
        "--min-cluster-size",
        type=int,
        default=None,
        help="Stability-optimal extraction with this minimum cluster size (default from DENDROCUT_MIN_CLUSTER_SIZE)",
    )
    parser.add_argument("--allow-single-cluster", action="store_true", help="Let the root be selected as one cluster")
    parser.add_argument("--output-prefix", type=Path, default=None, help="Base path for outputs (default: input without suffix)")
    parser.add_argument("--profile", action="store_true", help="Log a phase timing report")
    parser.add_argument("--log-file", type=Path, default=None, help="Also write a verbose log to this file")
    parser.add_argument("--quiet", action="store_true", help="No console logging")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace):
    """Translate CLI flags into an extraction config (env defaults apply to stability)."""
    if args.allow_single_cluster and (args.height is not None or args.n_clusters is not None):
        raise InvalidConfigurationError("--allow-single-cluster only applies to stability extraction")
    if args.height is not None:
        return HeightCutConfig(height=args.height)
    if args.n_clusters is not None:
        return ClusterCountConfig(n_clusters=args.n_clusters)
    if args.min_cluster_size is not None:
        return StabilityConfig(
            min_cluster_size=args.min_cluster_size,
            allow_single_cluster=args.allow_single_cluster,
        )
    env_config = get_stability_config()
    return StabilityConfig(
        min_cluster_size=env_config.min_cluster_size,
        allow_single_cluster=args.allow_single_cluster or env_config.allow_single_cluster,
    )


def load_points(path: Path, id_column: Optional[str]):
    """Return (object names, coordinate matrix) from a CSV file."""
    frame = pd.read_csv(path)
    if id_column is not None:
        if id_column not in frame.columns:
            raise InvalidConfigurationError(f"Column {id_column!r} not found in {path}")
        names = frame[id_column].astype(str).tolist()
        frame = frame.drop(columns=[id_column])
    else:
        names = [str(i) for i in range(len(frame))]
    coordinates = frame.select_dtypes(include="number")
    if coordinates.shape[1] == 0 and len(frame):
        raise InvalidConfigurationError(f"No numeric columns found in {path}")
    return names, coordinates.to_numpy(dtype=float)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    try:
        log_level = get_log_level()
    except InvalidConfigurationError as exc:
        setup_logging(console_level=DEFAULT_LOG_LEVEL, log_file=args.log_file, quiet=args.quiet)
        logger.error("Invalid configuration: %s", exc)
        return EXIT_EXTRACTION_ERROR
    setup_logging(console_level=log_level, log_file=args.log_file, quiet=args.quiet)
    out_prefix = args.output_prefix or args.input.with_suffix("")

    report = PerformanceReport("extract_clusters", metadata={"input": str(args.input)})
    try:
        config = build_config(args)
        with profile_phase("load_points", report):
            names, points = load_points(args.input, args.id_column)
        logger.info("Loaded %d points with %d dimensions from %s", len(names), points.shape[1], args.input)
        with profile_phase("single_linkage", report):
            hierarchy = pointer_hierarchy_from_points(points, metric=args.metric)
        result = extract(hierarchy, config, report=report)
    except ExtractionError as exc:
        logger.error("Extraction failed: %s", exc)
        return EXIT_EXTRACTION_ERROR

    assignments = result.to_frame()
    assignments.insert(1, "name", names)
    assignments_path = Path(f"{out_prefix}.clusters.csv")
    summary_path = Path(f"{out_prefix}.summary.json")
    assignments.to_csv(assignments_path, index=False)
    summary_path.write_text(json.dumps(result.summary(), indent=2))
    logger.info("Saved assignments to %s and summary to %s", assignments_path, summary_path)

    if args.profile:
        logger.info(report.format_report(verbose=True))
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
