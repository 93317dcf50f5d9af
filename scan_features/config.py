"""
Configuration management for scan feature extraction.

Loads YAML parameter files over dataclass defaults for every stage.
"""

import os
from dataclasses import asdict, dataclass, field, fields
from typing import Optional

import yaml


SEGMENTATION_STRATEGIES = ('split', 'merge', 'ransac')
MERGE_STRATEGIES = ('adjacent', 'brute_force', 'collinear', 'none')


@dataclass
class ClusteringConfig:
    """Configuration for point clustering."""
    enabled: bool = True
    ordered: bool = True  # points come from one angular sweep
    sort_by_angle: bool = False
    distance_threshold: float = 0.1
    min_cluster_size: int = 3


@dataclass
class RansacConfig:
    """Configuration for RANSAC fitters."""
    delta: float = 0.2
    itr_limit: int = 10
    score_threshold: float = 0.9  # for the RANSAC segmentation strategy
    random_seed: Optional[int] = None


@dataclass
class SegmentationConfig:
    """Configuration for piecewise line segmentation."""
    strategy: str = 'split'  # 'split', 'merge' or 'ransac'
    regression_error_threshold: float = 0.1


@dataclass
class MergeConfig:
    """Configuration for segment consolidation."""
    strategy: str = 'adjacent'  # 'adjacent', 'brute_force', 'collinear' or 'none'
    distance_threshold: float = 0.2
    angle_threshold: float = 0.2
    perp_dist_threshold: float = 0.1


@dataclass
class CircleConfig:
    """Configuration for per-cluster circle fitting."""
    enabled: bool = False
    min_circle_score: float = 0.8
    max_radius: float = 1.0


@dataclass
class LoggingConfig:
    """Configuration for the command-line logger."""
    level: str = 'INFO'


@dataclass
class ExtractorConfig:
    """Complete extraction configuration."""
    clustering: ClusteringConfig = field(default_factory=ClusteringConfig)
    ransac: RansacConfig = field(default_factory=RansacConfig)
    segmentation: SegmentationConfig = field(default_factory=SegmentationConfig)
    merge: MergeConfig = field(default_factory=MergeConfig)
    circle: CircleConfig = field(default_factory=CircleConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def validate(self):
        """Raise ValueError on values no stage can work with."""
        if self.segmentation.strategy not in SEGMENTATION_STRATEGIES:
            raise ValueError(
                f'Unknown segmentation strategy {self.segmentation.strategy!r}, '
                f'expected one of {SEGMENTATION_STRATEGIES}')
        if self.merge.strategy not in MERGE_STRATEGIES:
            raise ValueError(
                f'Unknown merge strategy {self.merge.strategy!r}, '
                f'expected one of {MERGE_STRATEGIES}')
        if self.ransac.itr_limit < 1:
            raise ValueError(f'ransac.itr_limit must be >= 1, got {self.ransac.itr_limit}')
        for name, value in (
            ('clustering.distance_threshold', self.clustering.distance_threshold),
            ('ransac.delta', self.ransac.delta),
            ('segmentation.regression_error_threshold',
             self.segmentation.regression_error_threshold),
            ('merge.distance_threshold', self.merge.distance_threshold),
            ('merge.angle_threshold', self.merge.angle_threshold),
            ('merge.perp_dist_threshold', self.merge.perp_dist_threshold),
        ):
            if value < 0:
                raise ValueError(f'{name} must be >= 0, got {value}')
        return self


def load_config(config_path=None):
    """
    Load configuration from YAML file.

    Falls back to defaults for any missing values; unknown keys are ignored.
    """
    config = ExtractorConfig()

    if config_path and os.path.exists(config_path):
        with open(config_path, 'r', encoding='utf-8') as f:
            yaml_data = yaml.safe_load(f) or {}

        config = _merge_config(config, yaml_data)

    return config.validate()


def _merge_config(config, yaml_data):
    """Merge YAML data into config dataclass."""
    for section in fields(config):
        values = yaml_data.get(section.name)
        if not isinstance(values, dict):
            continue
        target = getattr(config, section.name)
        types = {f.name: f.type for f in fields(target)}
        for key, value in values.items():
            if key in types:
                name = f'{section.name}.{key}'
                setattr(target, key, _coerce(name, value, types[key]))

    return config


def save_default_config(path):
    """Save default configuration to YAML file for reference."""
    with open(path, 'w', encoding='utf-8') as f:
        yaml.safe_dump(asdict(ExtractorConfig()), f, default_flow_style=False, sort_keys=False)


def _coerce(name, value, field_type):
    """Cast a YAML value to the type of the config field it sets."""
    if field_type == Optional[int]:
        if value is None:
            return None
        field_type = int
    if field_type is bool:
        if not isinstance(value, bool):
            raise ValueError(f'{name} must be true or false, got {value!r}')
        return value
    if field_type is int and isinstance(value, float) and not value.is_integer():
        raise ValueError(f'{name} must be an integer, got {value!r}')
    try:
        return field_type(value)
    except (TypeError, ValueError):
        raise ValueError(f'{name} must be {field_type.__name__}, got {value!r}') from None
