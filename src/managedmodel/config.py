"""
Framework configuration for proxy generation.

Module-level, pluggable settings read by ManagedProxyClassGenerator when it
is constructed without an explicit config.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class GeneratorConfig:
    """Settings for generated implementation classes."""
    impl_class_suffix: str = "_Impl"
    check_value_types: bool = True  # reject setter values that do not match the declared type
    check_call_arguments: bool = True  # bind forwarded calls against the delegate signature


DEFAULT_GENERATOR_CONFIG = GeneratorConfig()

_generator_config: GeneratorConfig = DEFAULT_GENERATOR_CONFIG


def set_generator_config(config: GeneratorConfig) -> None:
    """Set the configuration used by generators created afterwards."""
    global _generator_config
    _generator_config = config


def get_generator_config() -> GeneratorConfig:
    return _generator_config


def reset_generator_config() -> None:
    """Restore the default configuration (for testing)."""
    set_generator_config(DEFAULT_GENERATOR_CONFIG)
