"""Engine configuration."""

from corpval.scenarios.config import DCFConfig
from corpval.scenarios.config import LBOConfig

__all__ = ['DCFConfig', 'LBOConfig']
