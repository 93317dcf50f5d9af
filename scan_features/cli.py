"""
Command-line interface for scan feature extraction.

Provides commands for extracting features from point files, running a
synthetic demo and writing the default configuration.
"""

import argparse
import logging
import os
import sys

import numpy as np
import yaml

from .config import load_config, save_default_config
from .laser_scan_handler import LaserScanHandler
from .pipeline import FeatureExtractor
from .synthetic import room_scan

logger = logging.getLogger(__name__)


def load_points(path):
    """
    Load an (N, 2) point array from a .npy or text (.csv/.txt) file.
    """
    if path.endswith('.npy'):
        points = np.load(path)
    else:
        delimiter = ',' if path.endswith('.csv') else None
        points = np.loadtxt(path, delimiter=delimiter, ndmin=2)

    if points.ndim != 2 or points.shape[1] < 2:
        raise ValueError(f'Expected an (N, 2) point array in {path}, got shape {points.shape}')
    return points[:, :2]


def print_result(result, out=sys.stdout):
    """Print extracted features, one per line."""
    print(f'clusters: {len(result.clusters)}', file=out)
    print(f'segments: {len(result.line_segments)}', file=out)
    for seg in result.line_segments:
        print(
            f'  line ({seg.start.x:.3f}, {seg.start.y:.3f}) -> '
            f'({seg.end.x:.3f}, {seg.end.y:.3f})  length={seg.length():.3f}',
            file=out,
        )
    if result.circles:
        print(f'circles: {len(result.circles)}', file=out)
        for circle, score in zip(result.circles, result.circle_scores):
            print(
                f'  circle center=({circle.x:.3f}, {circle.y:.3f}) r={circle.r:.3f} '
                f'score={score:.2f}',
                file=out,
            )


def _build_config(args):
    if args.config and not os.path.exists(args.config):
        raise FileNotFoundError(f'Config file not found: {args.config}')
    config = load_config(args.config)
    if args.seed is not None:
        config.ransac.random_seed = args.seed
    if getattr(args, 'ordered', False):
        config.clustering.ordered = True
    if getattr(args, 'unordered', False):
        config.clustering.ordered = False
    if args.circles:
        config.circle.enabled = True
    return config.validate()


def _configure_logging(level_name):
    level = getattr(logging, level_name.upper(), None)
    if not isinstance(level, int):
        raise ValueError(f'Unknown log level: {level_name}')
    logging.basicConfig(
        level=level,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )


def _add_common_args(parser):
    parser.add_argument(
        '--config', '-c',
        default=None,
        help='Path to YAML configuration file',
    )
    parser.add_argument(
        '--seed',
        type=int,
        default=None,
        help='Seed for RANSAC sampling',
    )
    parser.add_argument(
        '--circles',
        action='store_true',
        help='Also fit a circle to every cluster',
    )
    parser.add_argument(
        '--log-level',
        default=None,
        choices=['ERROR', 'WARNING', 'INFO', 'DEBUG'],
        help='Log level (defaults to logging.level from the config)',
    )


def main(argv=None):
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description='Extract line segments and circles from 2D scan points',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # Extract command
    extract_parser = subparsers.add_parser('extract', help='Extract features from a point file')
    extract_parser.add_argument(
        '--input', '-i',
        required=True,
        help='Point file (.npy, .csv or whitespace separated text), one x y per row',
    )
    order_group = extract_parser.add_mutually_exclusive_group()
    order_group.add_argument(
        '--ordered',
        action='store_true',
        help='Points are sorted by angle (one sensor sweep)',
    )
    order_group.add_argument(
        '--unordered',
        action='store_true',
        help='Points are an unordered set',
    )
    _add_common_args(extract_parser)

    # Demo command
    demo_parser = subparsers.add_parser('demo', help='Run on a synthetic room scan')
    demo_parser.add_argument(
        '--noise-level',
        type=float,
        default=0.01,
        help='Standard deviation of range noise',
    )
    demo_parser.add_argument(
        '--outlier-ratio',
        type=float,
        default=0.05,
        help='Fraction of invalid readings',
    )
    _add_common_args(demo_parser)

    # Dump-config command
    dump_parser = subparsers.add_parser('dump-config', help='Write the default configuration')
    dump_parser.add_argument('path', help='Output YAML path')

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    if args.command == 'dump-config':
        save_default_config(args.path)
        print(f'Default configuration written to {args.path}')
        return 0

    try:
        config = _build_config(args)
        _configure_logging(args.log_level or config.logging.level)

        if args.command == 'extract':
            points = load_points(args.input)
            logger.info(f'Loaded {len(points)} points from {args.input}')
        else:
            rng = np.random.default_rng(config.ransac.random_seed)
            scan = room_scan(
                noise_level=args.noise_level,
                outlier_ratio=args.outlier_ratio,
                rng=rng,
            )
            points = LaserScanHandler.laserscan_to_point_cloud(scan)
            config.clustering.ordered = True
            logger.info(f'Generated synthetic room scan with {len(points)} valid points')

        result = FeatureExtractor(config).extract(points)
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f'Error: {e}', file=sys.stderr)
        return 1

    print_result(result)
    return 0


if __name__ == '__main__':
    sys.exit(main())
