"""
Unit tests for the extraction pipeline, configuration and CLI.
"""

import os

import numpy as np
import pytest

from scan_features.cli import load_points, main
from scan_features.config import (
    ClusteringConfig,
    ExtractorConfig,
    MergeConfig,
    SegmentationConfig,
    load_config,
    save_default_config,
)
from scan_features.laser_scan_handler import LaserScanHandler
from scan_features.pipeline import ExtractionResult, FeatureExtractor, fit_line_segments
from scan_features.primitives import LineSegment2D, Point2D
from scan_features.synthetic import circle_points, line_points, room_scan

CONFIG_FILE = os.path.join(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__))),
    'config', 'scan_features_params.yaml'
)


def _near_room_wall(p, half_width=2.0, half_length=3.0, tolerance=0.15):
    return min(abs(abs(p.x) - half_width), abs(abs(p.y) - half_length)) < tolerance


class TestFitLineSegments:
    """Tests for the default line extraction."""

    def test_collinear_points(self):
        points = [Point2D(0, 0), Point2D(1, 0), Point2D(2, 0), Point2D(3, 0)]

        assert fit_line_segments(points) == [LineSegment2D(Point2D(0, 0), Point2D(3, 0))]

    def test_l_shape(self, l_shape_points):
        segments = fit_line_segments(l_shape_points)

        assert len(segments) == 2
        assert segments[0].angle() == pytest.approx(0.0, abs=1e-6)
        assert segments[1].angle() == pytest.approx(np.pi / 2, abs=1e-6)

    def test_too_few_points(self):
        assert fit_line_segments([Point2D(0, 0)]) == []


class TestFeatureExtractor:
    """Tests for FeatureExtractor."""

    def test_room_scan(self):
        scan = room_scan(noise_level=0.01, rng=np.random.default_rng(42))
        points, _ = LaserScanHandler.laserscan_to_cartesian(scan)
        config = ExtractorConfig(clustering=ClusteringConfig(distance_threshold=0.3))

        result = FeatureExtractor(config).extract(points)

        assert len(result.clusters) == 1
        assert 4 <= len(result.line_segments) <= 8
        total_length = sum(s.length() for s in result.line_segments)
        assert 15.0 < total_length < 21.0
        for seg in result.line_segments:
            assert _near_room_wall(seg.start)
            assert _near_room_wall(seg.end)

    def test_separate_objects_are_clustered(self):
        points = np.vstack([
            line_points((0.0, 0.0), (1.0, 0.0), 21),
            line_points((3.0, 0.0), (3.0, 1.0), 21),
        ])

        result = FeatureExtractor().extract(points)

        assert len(result.clusters) == 2
        assert len(result.line_segments) == 2

    def test_unordered_clustering(self, rng):
        points = np.vstack([
            line_points((0.0, 0.0), (1.0, 0.0), 21),
            line_points((3.0, 0.0), (4.0, 0.0), 21),
        ])
        config = ExtractorConfig(clustering=ClusteringConfig(ordered=False))

        result = FeatureExtractor(config).extract(points[rng.permutation(len(points))])

        assert sorted(len(c) for c in result.clusters) == [21, 21]

    @pytest.mark.parametrize('strategy', ['split', 'merge', 'ransac'])
    def test_segmentation_strategies(self, strategy, l_shape_points):
        config = ExtractorConfig(segmentation=SegmentationConfig(strategy=strategy))
        config.clustering.distance_threshold = 0.2
        config.ransac.delta = 0.05
        config.ransac.itr_limit = 50

        result = FeatureExtractor(config, rng=np.random.default_rng(3)).extract(l_shape_points)

        assert len(result.line_segments) == 2

    def test_circle_is_detected(self):
        config = ExtractorConfig()
        config.circle.enabled = True

        result = FeatureExtractor(config, rng=np.random.default_rng(0)).extract(
            circle_points((1.0, 1.0), 0.2, 40))

        assert len(result.circles) == 1
        assert result.circles[0].r == pytest.approx(0.2, abs=1e-6)
        assert result.circles[0].center == Point2D(1.0, 1.0)
        assert result.circle_scores[0] == pytest.approx(1.0)

    def test_collinear_cluster_has_no_circle(self):
        config = ExtractorConfig()
        config.circle.enabled = True

        result = FeatureExtractor(config, rng=np.random.default_rng(0)).extract(
            line_points((0.0, 0.0), (2.0, 0.0), 41))

        assert result.circles == []
        assert len(result.line_segments) == 1

    def test_large_circle_is_rejected(self):
        config = ExtractorConfig(clustering=ClusteringConfig(distance_threshold=0.5))
        config.circle.enabled = True
        config.circle.max_radius = 1.0

        result = FeatureExtractor(config, rng=np.random.default_rng(0)).extract(
            circle_points((0.0, 0.0), 3.0, 60))

        assert result.circles == []

    def test_empty_input(self):
        result = FeatureExtractor().extract([])

        assert result == ExtractionResult()

    def test_invalid_config(self):
        with pytest.raises(ValueError):
            FeatureExtractor(ExtractorConfig(merge=MergeConfig(strategy='sideways')))


class TestConfig:
    """Tests for configuration loading."""

    def test_defaults(self):
        config = load_config()

        assert config == ExtractorConfig()
        assert config.segmentation.strategy == 'split'

    def test_shipped_parameter_file(self):
        assert load_config(CONFIG_FILE) == ExtractorConfig()

    def test_unknown_strategy_rejected(self):
        with pytest.raises(ValueError):
            ExtractorConfig(segmentation=SegmentationConfig(strategy='bogus')).validate()

    def test_negative_threshold_rejected(self):
        with pytest.raises(ValueError):
            ExtractorConfig(merge=MergeConfig(angle_threshold=-0.1)).validate()

    def test_partial_yaml_with_unknown_keys(self, tmp_path):
        path = tmp_path / 'params.yaml'
        path.write_text(
            'segmentation:\n'
            '  strategy: merge\n'
            '  unknown_key: 1\n'
            'ransac:\n'
            '  random_seed: 7\n'
            'unknown_section:\n'
            '  foo: bar\n'
        )

        config = load_config(str(path))

        assert config.segmentation.strategy == 'merge'
        assert config.segmentation.regression_error_threshold == 0.1
        assert config.ransac.random_seed == 7
        assert not hasattr(config.segmentation, 'unknown_key')

    def test_invalid_yaml_value(self, tmp_path):
        path = tmp_path / 'params.yaml'
        path.write_text('merge:\n  strategy: sideways\n')

        with pytest.raises(ValueError):
            load_config(str(path))

    def test_quoted_numbers_are_cast(self, tmp_path):
        path = tmp_path / 'params.yaml'
        path.write_text(
            'clustering:\n'
            '  distance_threshold: "0.3"\n'
            'ransac:\n'
            '  itr_limit: "25"\n'
            '  random_seed: null\n'
        )

        config = load_config(str(path))

        assert config.clustering.distance_threshold == pytest.approx(0.3)
        assert config.ransac.itr_limit == 25
        assert config.ransac.random_seed is None

    @pytest.mark.parametrize('text', [
        'ransac:\n  itr_limit: many\n',
        'ransac:\n  itr_limit: 2.5\n',
        'clustering:\n  enabled: "yes"\n',
        'merge:\n  angle_threshold: [1, 2]\n',
    ])
    def test_mistyped_value_rejected(self, tmp_path, text):
        path = tmp_path / 'params.yaml'
        path.write_text(text)

        with pytest.raises(ValueError):
            load_config(str(path))

    def test_save_and_reload_defaults(self, tmp_path):
        path = str(tmp_path / 'defaults.yaml')

        save_default_config(path)

        assert load_config(path) == ExtractorConfig()


class TestCli:
    """Tests for the command-line interface."""

    def test_dump_config(self, tmp_path):
        path = str(tmp_path / 'out.yaml')

        assert main(['dump-config', path]) == 0
        assert load_config(path) == ExtractorConfig()

    def test_extract_csv(self, tmp_path, capsys):
        path = str(tmp_path / 'points.csv')
        np.savetxt(path, line_points((0.0, 0.0), (1.0, 0.0), 21), delimiter=',')

        assert main(['extract', '--input', path, '--seed', '1']) == 0

        out = capsys.readouterr().out
        assert 'clusters: 1' in out
        assert 'segments: 1' in out

    def test_extract_npy_unordered(self, tmp_path, capsys):
        path = str(tmp_path / 'points.npy')
        np.save(path, line_points((0.0, 0.0), (0.0, 1.0), 21)[::-1])

        assert main(['extract', '-i', path, '--unordered']) == 0
        assert 'segments: 1' in capsys.readouterr().out

    def test_load_points_rejects_bad_shape(self, tmp_path):
        path = str(tmp_path / 'points.txt')
        np.savetxt(path, np.arange(5.0))

        with pytest.raises(ValueError):
            load_points(path)

    def test_missing_input(self, tmp_path, capsys):
        assert main(['extract', '-i', str(tmp_path / 'missing.csv')]) == 1
        assert 'Error' in capsys.readouterr().err

    def test_missing_config(self, tmp_path):
        assert main(['demo', '--config', str(tmp_path / 'missing.yaml')]) == 1

    def test_mistyped_config(self, tmp_path, capsys):
        path = tmp_path / 'params.yaml'
        path.write_text('clustering:\n  distance_threshold: close\n')

        assert main(['demo', '--config', str(path)]) == 1
        assert 'clustering.distance_threshold' in capsys.readouterr().err

    def test_demo(self, capsys):
        assert main(['demo', '--seed', '3', '--circles']) == 0
        assert 'segments:' in capsys.readouterr().out

    def test_no_command(self, capsys):
        assert main([]) == 1
