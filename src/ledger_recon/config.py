"""Configuration loader and validation for reconciliation settings."""

from decimal import Decimal
from pathlib import Path
from typing import Any, Optional
import logging

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class CsvInputConfig(BaseModel):
    """Configuration for transaction CSV parsing."""

    encoding: str = "utf-8"
    delimiter: str = ","
    date_format: str = "%Y-%m-%d"
    column_mappings: dict[str, str] = Field(
        default_factory=lambda: {
            "id": "id",
            "date": "date",
            "description": "description",
            "amount": "amount",
            "kind": "kind",
        }
    )
    income_labels: list[str] = Field(
        default_factory=lambda: ["income", "credit", "in", "deposit"]
    )
    expense_labels: list[str] = Field(
        default_factory=lambda: ["expense", "debit", "out", "withdrawal"]
    )


def _float_to_decimal(value: Any) -> Any:
    # YAML floats such as 0.05 must not pick up binary noise
    if isinstance(value, float):
        return Decimal(str(value))
    return value


class InputConfig(BaseModel):
    """Configuration for input file parsing."""

    csv: CsvInputConfig = Field(default_factory=CsvInputConfig)


class AutoMatchSettings(BaseModel):
    """Settings for the automatic, phased reconciler."""

    date_margin_days: int = Field(default=3, ge=0)
    amount_tolerance: Decimal = Field(default=Decimal("0.05"), ge=0)
    max_combination_size: int = Field(default=4, ge=0)

    @field_validator("amount_tolerance", mode="before")
    @classmethod
    def coerce_amount(cls, value: Any) -> Any:
        return _float_to_decimal(value)


class CandidateSettings(BaseModel):
    """Settings for interactive candidate scoring."""

    date_margin_days: int = Field(default=5, ge=0)
    amount_tolerance: Decimal = Field(default=Decimal("1"), ge=0)
    amount_tolerance_abs: Decimal = Field(default=Decimal("1000"), ge=0)

    @field_validator("amount_tolerance", "amount_tolerance_abs", mode="before")
    @classmethod
    def coerce_amounts(cls, value: Any) -> Any:
        return _float_to_decimal(value)


class ExcelOutputConfig(BaseModel):
    """Configuration for Excel output."""

    filename_template: str = "reconciliation_report_{date}_{time}.xlsx"


class SheetConfig(BaseModel):
    """Configuration for a report sheet."""

    enabled: bool = True
    name: str


class SheetsConfig(BaseModel):
    """Configuration for all report sheets."""

    summary: SheetConfig = Field(default_factory=lambda: SheetConfig(name="Summary"))
    matches: SheetConfig = Field(default_factory=lambda: SheetConfig(name="Matches"))
    unmatched_internal: SheetConfig = Field(
        default_factory=lambda: SheetConfig(name="Unmatched Internal")
    )
    unmatched_external: SheetConfig = Field(
        default_factory=lambda: SheetConfig(name="Unmatched External")
    )
    differences: SheetConfig = Field(default_factory=lambda: SheetConfig(name="Differences"))
    audit_trail: SheetConfig = Field(default_factory=lambda: SheetConfig(name="Audit Trail"))


class OutputConfig(BaseModel):
    """Configuration for output."""

    excel: ExcelOutputConfig = Field(default_factory=ExcelOutputConfig)
    sheets: SheetsConfig = Field(default_factory=SheetsConfig)


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: Optional[str] = None

    @field_validator("level")
    @classmethod
    def check_level(cls, value: str) -> str:
        if not isinstance(logging.getLevelName(value.upper()), int):
            raise ValueError(f"Unknown log level: {value}")
        return value.upper()


class ReconConfig(BaseModel):
    """Main configuration model for reconciliation."""

    input: InputConfig = Field(default_factory=InputConfig)
    matching: AutoMatchSettings = Field(default_factory=AutoMatchSettings)
    candidates: CandidateSettings = Field(default_factory=CandidateSettings)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    config_file_path: Optional[str] = None


def get_default_config() -> dict[str, Any]:
    """Return the default configuration as a dictionary."""
    return {
        "input": {
            "csv": {
                "encoding": "utf-8",
                "delimiter": ",",
                "date_format": "%Y-%m-%d",
                "column_mappings": {
                    "id": "id",
                    "date": "date",
                    "description": "description",
                    "amount": "amount",
                    "kind": "kind",
                },
                "income_labels": ["income", "credit", "in", "deposit"],
                "expense_labels": ["expense", "debit", "out", "withdrawal"],
            },
        },
        "matching": {
            "date_margin_days": 3,
            "amount_tolerance": 0.05,
            "max_combination_size": 4,
        },
        "candidates": {
            "date_margin_days": 5,
            "amount_tolerance": 1,
            "amount_tolerance_abs": 1000,
        },
        "output": {
            "excel": {
                "filename_template": "reconciliation_report_{date}_{time}.xlsx",
            },
            "sheets": {
                "summary": {"enabled": True, "name": "Summary"},
                "matches": {"enabled": True, "name": "Matches"},
                "unmatched_internal": {"enabled": True, "name": "Unmatched Internal"},
                "unmatched_external": {"enabled": True, "name": "Unmatched External"},
                "differences": {"enabled": True, "name": "Differences"},
                "audit_trail": {"enabled": True, "name": "Audit Trail"},
            },
        },
        "logging": {
            "level": "INFO",
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            "file": None,
        },
    }


def load_config(config_path: Optional[Path] = None) -> ReconConfig:
    """
    Load configuration from a YAML file or use defaults.

    Args:
        config_path: Path to YAML configuration file (optional)

    Returns:
        ReconConfig object with loaded or default settings

    Raises:
        ConfigurationError: If the file cannot be parsed or fails validation
    """
    config_dict = get_default_config()

    if config_path and config_path.exists():
        logger.info(f"Loading configuration from: {config_path}")
        try:
            with open(config_path, "r") as f:
                user_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

        if not isinstance(user_config, dict):
            raise ConfigurationError(f"Configuration root must be a mapping: {config_path}")

        # Deep merge user config into defaults
        config_dict = _deep_merge(config_dict, user_config)
        config_dict["config_file_path"] = str(config_path)
    else:
        logger.info("Using default configuration")

    try:
        return ReconConfig(**config_dict)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def _deep_merge(base: dict, override: dict) -> dict:
    """
    Deep merge two dictionaries.

    Args:
        base: Base dictionary
        override: Dictionary to merge on top

    Returns:
        Merged dictionary
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def generate_default_config(output_path: Path) -> None:
    """
    Generate a default configuration file.

    Args:
        output_path: Path to write the configuration file
    """
    config_dict = get_default_config()

    yaml_content = """# Ledger / statement reconciliation configuration
# Generated configuration file - customize as needed
#
# matching:   automatic phased matcher (exact, date window, tolerance, many-to-one)
# candidates: scoring used when resolving leftovers by hand

"""
    yaml_content += yaml.dump(config_dict, default_flow_style=False, sort_keys=False)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        f.write(yaml_content)

    logger.info(f"Generated configuration file: {output_path}")
