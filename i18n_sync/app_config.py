"""Application configuration for the catalog sync tool."""
import logging
import os
import sys
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv
from openai import AsyncOpenAI

from i18n_sync.logging_config import setup_logger

DEFAULT_SOURCE_FILE = 'en.json'
DEFAULT_CATALOG_DIR_NAME = 'i18n'
DEFAULT_MODEL_NAME = 'gpt-4o-mini'
DEFAULT_BATCH_SIZE = 20
DEFAULT_RETRY_ATTEMPTS = 3
DEFAULT_RETRY_BASE_DELAY = 0.4  # seconds, multiplied by the attempt number
DEFAULT_REQUEST_TIMEOUT = 30.0  # seconds per provider call
DEFAULT_REQUESTS_PER_MINUTE = 60
DEFAULT_LOG_FILE_PATH = 'logs/i18n_sync.log'
DEFAULT_SKIPPED_REPORT_PATH = 'logs/skipped_catalogs_report.log'


@dataclass
class AppConfig:
    """Settings for one sync run."""
    # Locations
    project_root: str
    search_root: str
    catalog_dir_name: str
    source_file_name: str

    # Provider
    model_name: str
    language_codes: Dict[str, str]
    openai_client: Optional[AsyncOpenAI]

    # Processing settings
    dry_run: bool = False
    batch_size: int = DEFAULT_BATCH_SIZE
    retry_attempts: int = DEFAULT_RETRY_ATTEMPTS
    retry_base_delay: float = DEFAULT_RETRY_BASE_DELAY
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    requests_per_minute: int = DEFAULT_REQUESTS_PER_MINUTE
    show_progress: bool = True
    skipped_report_path: str = DEFAULT_SKIPPED_REPORT_PATH
    supported_locales: List[Dict[str, str]] = field(default_factory=list)


def _compute_project_root() -> str:
    """The tool runs against the project it is invoked from."""
    return os.path.abspath(os.getcwd())


def _load_dotenv_files(project_root: str) -> None:
    """Load ``.env`` from the project root; existing environment variables win."""
    dotenv_path = os.path.join(project_root, '.env')
    if os.path.exists(dotenv_path):
        load_dotenv(dotenv_path)


def _load_yaml_config(project_root: str) -> Dict[str, Any]:
    """Load the YAML settings file, falling back to an empty mapping on any problem."""
    default_config_path = os.path.join(project_root, 'config.yaml')
    config_file = os.environ.get('I18N_SYNC_CONFIG_FILE', default_config_path)

    if not os.path.isabs(config_file):
        config_file = os.path.abspath(config_file)

    config: Dict[str, Any] = {}
    try:
        if not os.path.exists(config_file):
            print(f"Note: Configuration file '{config_file}' not found. Using default configuration.",
                  file=sys.stderr)
            return config

        if not os.access(config_file, os.R_OK):
            print(f"Error: Configuration file '{config_file}' exists but is not readable. Check file permissions.",
                  file=sys.stderr)
            return config

        with open(config_file, 'r', encoding='utf-8') as config_file_stream:
            loaded_config = yaml.safe_load(config_file_stream)
            if loaded_config is None:
                print(f"Warning: Configuration file '{config_file}' is empty. Using default configuration.",
                      file=sys.stderr)
            elif isinstance(loaded_config, dict):
                config = loaded_config
            else:
                print(f"Error: Configuration file '{config_file}' must contain a YAML dictionary. Using defaults.",
                      file=sys.stderr)

    except yaml.YAMLError as e:
        print(f"Error: Invalid YAML in configuration file '{config_file}': {e}", file=sys.stderr)
        print("Please check your YAML syntax. Using default configuration.", file=sys.stderr)
    except OSError as e:
        print(f"Error: Could not read configuration file '{config_file}': {e}", file=sys.stderr)
        print("Using default configuration.", file=sys.stderr)

    return config


def _setup_logger_from_config(config: Dict[str, Any]) -> logging.Logger:
    """Set up the package logger from the ``logging`` section."""
    log_config = config.get('logging') or {}
    log_level_str = str(log_config.get('log_level', 'INFO')).upper()
    log_file_path = log_config.get('log_file_path', DEFAULT_LOG_FILE_PATH)
    log_to_console = log_config.get('log_to_console', True)
    return setup_logger(log_level_str, log_file_path, log_to_console)


def _build_language_codes(locales_list: List[Dict[str, str]]) -> Dict[str, str]:
    """Map locale codes to human-readable language names."""
    language_codes: Dict[str, str] = {}
    for locale in locales_list:
        code = locale.get('code')
        name = locale.get('name')
        if code and name:
            language_codes[code] = name
    return language_codes


def _create_openai_client(translate: bool, logger: logging.Logger) -> Optional[AsyncOpenAI]:
    """
    Create the OpenAI client when translation was requested.

    A missing key is not fatal: catalogs are still synchronized with empty
    placeholders and translation is skipped with a warning.
    """
    if not translate:
        return None

    api_key_from_env = os.environ.get('OPENAI_API_KEY')
    if not api_key_from_env:
        logger.warning("OPENAI_API_KEY is not set; missing keys will be added without translation.")
        return None

    if not api_key_from_env.startswith('sk-'):
        logger.warning("OPENAI_API_KEY does not start with 'sk-'. This may be invalid.")

    # Retries are owned by RetryPolicy, so the SDK must not retry on its own.
    client = AsyncOpenAI(api_key=api_key_from_env, max_retries=0)
    logger.info("OpenAI client initialized successfully")
    return client


def load_app_config(
        translate: bool = False,
        source_file_name: Optional[str] = None,
        search_root: Optional[str] = None,
        dry_run: Optional[bool] = None
) -> AppConfig:
    """
    Load settings from config.yaml, .env and the environment.

    Explicit arguments (usually coming from the command line) win over the
    configuration file.

    Args:
        translate: Whether missing keys should be translated.
        source_file_name: Name of the source catalog inside the catalog directory.
        search_root: Directory searched for the catalog directory.
        dry_run: Override for the ``dry_run`` setting.

    Returns:
        AppConfig: The loaded application configuration.
    """
    project_root = _compute_project_root()
    _load_dotenv_files(project_root)
    config = _load_yaml_config(project_root)
    logger = _setup_logger_from_config(config)

    supported_locales = config.get('supported_locales') or []
    model_name = os.environ.get('OPENAI_MODEL_NAME', config.get('model_name', DEFAULT_MODEL_NAME))
    batch_size = int(os.environ.get('I18N_SYNC_BATCH_SIZE', config.get('batch_size', DEFAULT_BATCH_SIZE)))

    return AppConfig(
        project_root=project_root,
        search_root=search_root or config.get('search_root') or project_root,
        catalog_dir_name=config.get('catalog_dir_name', DEFAULT_CATALOG_DIR_NAME),
        source_file_name=source_file_name or config.get('source_file', DEFAULT_SOURCE_FILE),
        model_name=model_name,
        language_codes=_build_language_codes(supported_locales),
        openai_client=_create_openai_client(translate, logger),
        dry_run=config.get('dry_run', False) if dry_run is None else dry_run,
        batch_size=batch_size,
        retry_attempts=int(config.get('retry_attempts', DEFAULT_RETRY_ATTEMPTS)),
        retry_base_delay=float(config.get('retry_base_delay', DEFAULT_RETRY_BASE_DELAY)),
        request_timeout=float(config.get('request_timeout', DEFAULT_REQUEST_TIMEOUT)),
        requests_per_minute=int(config.get('requests_per_minute', DEFAULT_REQUESTS_PER_MINUTE)),
        show_progress=config.get('show_progress', True),
        skipped_report_path=config.get('skipped_report_path', DEFAULT_SKIPPED_REPORT_PATH),
        supported_locales=supported_locales,
    )
