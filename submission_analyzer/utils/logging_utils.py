import logging
import logging.config
import yaml
from pathlib import Path
from typing import Optional
from ..config.settings import settings

DEFAULT_LOGGING_CONFIG_PATH = Path(settings.LOGGING_CONFIG_PATH)


def setup_logging(config_path: Path = DEFAULT_LOGGING_CONFIG_PATH, json_format: Optional[bool] = None) -> None:
    """
    Set up logging configuration from a YAML file.

    Args:
        config_path (Path): Path to the logging configuration YAML file.
        json_format (bool): Emit console records through the ``json`` formatter
                            (python-json-logger). Defaults to ``settings.LOG_JSON``.
    """
    json_format = settings.LOG_JSON if json_format is None else json_format
    config_path = Path(config_path)
    if config_path.exists():
        try:
            with open(config_path, 'rt') as f:
                log_config = yaml.safe_load(f.read())
            if json_format:
                for handler in log_config.get("handlers", {}).values():
                    handler["formatter"] = "json"
            logging.config.dictConfig(log_config)
            logging.info(f"Logging configured successfully from {config_path}")
        except Exception as e:
            logging.basicConfig(level=logging.INFO)  # Basic config as fallback
            logging.error(f"Error loading logging configuration from {config_path}: {e}. Using basicConfig.")
    else:
        logging.basicConfig(level=logging.INFO)  # Basic config if no file found
        logging.warning(f"Logging configuration file not found at {config_path}. Using basicConfig.")

# Call setup_logging() explicitly at the application entry point, e.g.:
# from submission_analyzer.utils.logging_utils import setup_logging
# setup_logging()
