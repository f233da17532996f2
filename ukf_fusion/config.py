"""
Noise configuration for the lidar/radar unscented Kalman filter.
"""
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Dict, Union

import numpy as np
import yaml

from ukf_fusion.exceptions import ConfigError
from ukf_fusion.paths_internal import DEFAULT_CONFIG_PATH


@dataclass(frozen=True)
class UKFConfig:
    """
    Standard deviations that fully parameterize the filter.

    Attributes:
        std_a: Process noise, longitudinal acceleration (m/s^2)
        std_yawdd: Process noise, yaw acceleration (rad/s^2)
        std_laspx: Lidar noise, position x (m)
        std_laspy: Lidar noise, position y (m)
        std_radr: Radar noise, range (m)
        std_radphi: Radar noise, bearing (rad)
        std_radrd: Radar noise, range rate (m/s)
    """
    std_a: float = 0.63
    std_yawdd: float = 1.2
    std_laspx: float = 0.15
    std_laspy: float = 0.15
    std_radr: float = 0.9
    std_radphi: float = 0.005
    std_radrd: float = 0.5

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if not np.isfinite(value) or value <= 0:
                raise ConfigError(f"{f.name} must be a positive finite number, got {value!r}")

    @property
    def process_noise_covariance(self) -> np.ndarray:
        """Q: 2x2 covariance of (longitudinal, yaw) acceleration noise."""
        return np.diag([self.std_a ** 2, self.std_yawdd ** 2])

    @property
    def lidar_noise_covariance(self) -> np.ndarray:
        """R for lidar measurements [px, py]."""
        return np.diag([self.std_laspx ** 2, self.std_laspy ** 2])

    @property
    def radar_noise_covariance(self) -> np.ndarray:
        """R for radar measurements [rho, phi, rho_dot]."""
        return np.diag([self.std_radr ** 2, self.std_radphi ** 2, self.std_radrd ** 2])

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)

    @classmethod
    def from_dict(cls, values: Dict[str, float]) -> "UKFConfig":
        """
        Build a config from a mapping, falling back to defaults for missing keys.

        Raises:
            ConfigError: If the mapping contains unknown keys or non-numeric values
        """
        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {sorted(unknown)}")

        try:
            kwargs = {key: float(value) for key, value in values.items()}
        except (TypeError, ValueError) as err:
            raise ConfigError(f"Configuration values must be numeric: {err}") from err
        return cls(**kwargs)

    @classmethod
    def from_yaml(cls, path: Union[str, Path] = DEFAULT_CONFIG_PATH) -> "UKFConfig":
        """
        Load a config from a YAML file.

        Args:
            path: Path to a YAML mapping of std-dev names to values

        Returns:
            UKFConfig instance
        """
        with open(path, 'r') as fp:
            values = yaml.load(fp, yaml.FullLoader)

        if values is None:
            values = {}
        if not isinstance(values, dict):
            raise ConfigError(f"Expected a mapping in {path}, got {type(values).__name__}")
        return cls.from_dict(values)
