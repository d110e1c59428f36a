"""Command-line runner: cluster the vectors dropped into a directory, batch by batch."""

from __future__ import annotations

import argparse
import sys

from loguru import logger

from streaming_kmeans.src.config import config
from streaming_kmeans.src.errors import ConfigurationError, DimensionMismatchError
from streaming_kmeans.src.models.data_models import load_settings
from streaming_kmeans.src.services.batch_source import DirectoryBatchSource
from streaming_kmeans.src.services.metrics_service import MetricsService
from streaming_kmeans.src.services.stream_driver import BatchResult, StreamDriver
from streaming_kmeans.src.utils.drift_tracker import CenterDriftTracker
from streaming_kmeans.src.utils.logging_utils import configure_logger


def build_parser() -> argparse.ArgumentParser:
    defaults = config.kmeans
    parser = argparse.ArgumentParser(
        prog="streaming-kmeans",
        description="Streaming k-means over batches of vectors written to a directory",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  streaming-kmeans data/batches --k 3 --d 2
  streaming-kmeans data/batches --k 5 --d 10 --alpha 0.5 --initialization-mode uniform-positive

Notes:
  - Each file holds one vector per line, values separated by whitespace
  - Files appearing during one interval form one batch
  - alpha = 1 keeps exact running means, any other alpha forgets old batches
        """,
    )
    parser.add_argument(
        "directory",
        nargs="?",
        default=config.stream.directory,
        help=f"Directory to watch for new batch files (default: {config.stream.directory})",
    )
    parser.add_argument(
        "--batch-interval",
        type=float,
        default=config.stream.batch_interval_seconds,
        help="Seconds between directory polls",
    )
    parser.add_argument("--k", type=int, default=defaults.k, help="Number of clusters")
    parser.add_argument("--d", type=int, default=defaults.d, help="Vector dimensionality")
    parser.add_argument("--alpha", type=float, default=defaults.alpha, help="Update rule weight")
    parser.add_argument(
        "--max-iterations",
        type=int,
        default=defaults.max_iterations,
        help="Refinement rounds per batch",
    )
    parser.add_argument(
        "--initialization-mode",
        default=defaults.initialization_mode,
        help="gaussian (gauss) or uniform-positive (pos)",
    )
    parser.add_argument(
        "--partitions",
        type=int,
        default=defaults.partitions,
        help="Parallel partitions per batch reduction",
    )
    parser.add_argument(
        "--max-batches",
        type=int,
        default=None,
        help="Stop after this many polls (default: run until interrupted)",
    )
    parser.add_argument("--log-level", default=config.app.log_level, help="Loguru log level")
    return parser


def _print_labels(result: BatchResult) -> None:
    preview = result.labels[:10]
    logger.bind(event="batch_labels", n_samples=result.n_samples).info(
        "labels {preview}{more}",
        preview=preview,
        more=" ..." if result.n_samples > len(preview) else "",
    )


def run(args: argparse.Namespace) -> int:
    try:
        settings = load_settings(
            k=args.k,
            d=args.d,
            alpha=args.alpha,
            max_iterations=args.max_iterations,
            initialization_mode=args.initialization_mode,
            partitions=args.partitions,
        )
    except ConfigurationError as exc:
        logger.error("{error}", error=str(exc))
        return 2

    driver = StreamDriver(
        settings, metrics=MetricsService(), drift_tracker=CenterDriftTracker(),
    )
    driver.start()
    source = DirectoryBatchSource(args.directory, d=settings.d)
    try:
        for batch in source.iter_batches(args.batch_interval, max_batches=args.max_batches):
            try:
                result = driver.process_batch(batch, batch_id=str(source.batch_id))
            except DimensionMismatchError:
                # the driver already logged it and kept the previous model
                continue
            _print_labels(result)
    except KeyboardInterrupt:
        logger.info("Interrupted after {n} batches", n=driver.batches_processed)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Parse arguments and run the streaming loop."""
    args = build_parser().parse_args(argv)
    configure_logger(args.log_level)
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
