from .runtime_config import DEFAULT_BASE, RuntimeMetricsConfig, get_config

__all__ = ['DEFAULT_BASE', 'RuntimeMetricsConfig', 'get_config']
