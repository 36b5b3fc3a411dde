"""Configuration management for the ISNCSCI classifier."""

import logging
import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
env_path = Path(__file__).parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)
else:
    # Fall back to template for defaults
    template_path = Path(__file__).parent.parent / ".env.template"
    if template_path.exists():
        load_dotenv(template_path)


class Config:
    """Application configuration."""

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Output format for the classify command: "text" or "json"
    OUTPUT_FORMAT: str = os.getenv("OUTPUT_FORMAT", "text").lower()

    # Directory of XML test cases used by the verify command
    TEST_CASES_DIR: str | None = os.getenv("TEST_CASES_DIR") or None

    @classmethod
    def get_log_level(cls) -> int:
        """Get the configured log level, falling back to INFO for unknown names."""
        level = logging.getLevelName(cls.LOG_LEVEL)
        return level if isinstance(level, int) else logging.INFO

    @classmethod
    def use_json_output(cls) -> bool:
        return cls.OUTPUT_FORMAT == "json"

    @classmethod
    def get_test_case_paths(cls) -> list[Path]:
        """XML test cases in TEST_CASES_DIR, sorted by name."""
        if not cls.TEST_CASES_DIR:
            return []
        directory = Path(cls.TEST_CASES_DIR)
        if not directory.is_dir():
            return []
        return sorted(directory.glob("*.xml"))


config = Config()
