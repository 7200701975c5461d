"""Configuration management using Pydantic v2 models.

This module provides the configuration classes for the weighted distribution
engine. It uses Pydantic models for validation and YAML round-tripping of
the few knobs the engine exposes: how non-positive weights are handled and
how the package logger is set up.

Examples:
    Strict ingestion that refuses non-positive weights::

        from weighted_descriptive.config import DistributionConfig
        from weighted_descriptive.distribution import WeightedDistribution

        config = DistributionConfig(invalid_weight_policy="raise")
        dist = WeightedDistribution(config=config)

    Loading from file::

        config = DistributionConfig.from_yaml(Path("distribution.yaml"))
        config.setup_logging()
"""

import logging
from pathlib import Path
import sys
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator
import yaml

PACKAGE_LOGGER = "weighted_descriptive"


class LoggingConfig(BaseModel):
    """Settings for the ``weighted_descriptive`` package logger.

    The engine logs skipped-weight summaries at WARNING and derivation
    passes at DEBUG, so ``WARNING`` keeps only data-quality messages.
    """

    enabled: bool = Field(default=True, description="Install handlers on the package logger")
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Threshold of the package logger"
    )
    log_file: Optional[Path] = Field(
        default=None, description="Append records to this file (None=no file)"
    )
    console_output: bool = Field(default=True, description="Write records to stdout")
    format: str = Field(
        default="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        description="Record format for every handler",
    )

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        """Accept lower-case level names such as ``debug``."""
        if isinstance(v, str):
            return v.upper()
        return v

    def build_handlers(self) -> List[logging.Handler]:
        """Create the console and file handlers this configuration asks for."""
        handlers: List[logging.Handler] = []
        if self.console_output:
            handlers.append(logging.StreamHandler(sys.stdout))
        if self.log_file is not None:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(self.log_file, encoding="utf-8"))

        formatter = logging.Formatter(self.format)
        for handler in handlers:
            handler.setFormatter(formatter)
        return handlers


class DistributionConfig(BaseModel):
    """Behavior of a :class:`~weighted_descriptive.distribution.WeightedDistribution`.

    Attributes:
        invalid_weight_policy: ``"skip"`` drops pairs whose weight is not
            positive and keeps the rest of the call; ``"raise"`` rejects the
            whole call with :class:`~weighted_descriptive.exceptions.InvalidWeightError`.
        warn_on_skipped_weights: Emit one
            :class:`~weighted_descriptive._warnings.InvalidWeightWarning` per
            skipped pair under the ``"skip"`` policy.
        logging: Package logger settings applied by :meth:`setup_logging`.
    """

    invalid_weight_policy: Literal["skip", "raise"] = Field(
        default="skip", description="What to do with non-positive weights"
    )
    warn_on_skipped_weights: bool = Field(
        default=True, description="Emit a warning for each skipped observation"
    )
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DistributionConfig":
        """Create config from a plain dictionary.

        Args:
            data: Mapping with any subset of the config fields.

        Returns:
            Validated DistributionConfig.
        """
        return cls(**data)

    @classmethod
    def from_yaml(cls, path: Path) -> "DistributionConfig":
        """Load configuration from YAML file.

        Args:
            path: Path to YAML configuration file.

        Returns:
            Validated DistributionConfig object.

        Raises:
            FileNotFoundError: If config file doesn't exist.
            ValidationError: If configuration is invalid.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        return cls.from_dict(data)

    def to_yaml(self, path: Path) -> None:
        """Save configuration to YAML file.

        Args:
            path: Path where to save the configuration.
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(
                self.model_dump(mode="json"), f, default_flow_style=False, sort_keys=False
            )

    def setup_logging(self):
        """Point the package logger at the configured handlers.

        Handlers installed by an earlier call are closed and replaced, so
        repeated calls do not duplicate output. Nothing changes when logging
        is disabled.

        Returns:
            The ``weighted_descriptive`` logger.
        """
        logger = logging.getLogger(PACKAGE_LOGGER)
        if not self.logging.enabled:
            return logger

        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        for handler in self.logging.build_handlers():
            logger.addHandler(handler)
        logger.setLevel(self.logging.level)
        return logger
