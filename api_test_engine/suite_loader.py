"""Load and parse test suites from YAML files."""

from pathlib import Path

import yaml
from pydantic import ValidationError

from api_test_engine.models.suite import TestSuite


async def load_suite(suite_file: Path) -> TestSuite:
    """Load a test suite definition.

    Args:
        suite_file: Path to the suite YAML file

    Returns:
        Parsed test suite

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If YAML is invalid or doesn't match schema

    """
    if not suite_file.exists():
        raise FileNotFoundError(f"Suite file not found: {suite_file}")

    try:
        with suite_file.open() as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {suite_file}: {e}") from e

    if data is None:
        raise ValueError(f"Empty suite file: {suite_file}")

    try:
        return TestSuite.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid suite schema in {suite_file}: {e}") from e
