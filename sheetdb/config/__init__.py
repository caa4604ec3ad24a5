"""Job configuration loading and schema validation."""

from .loader import ConfigError, LoadJobConfig, SheetJobConfig, load_job_config, validate_payload

__all__ = ["ConfigError", "LoadJobConfig", "SheetJobConfig", "load_job_config", "validate_payload"]
