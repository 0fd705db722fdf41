# File: ConfigLoader.py
import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml
from dotenv import dotenv_values

from .S3Config import S3Config
from .S3FileSystemConfiguration import S3FileSystemConfiguration

logger = logging.getLogger(__name__)


class ConfigLoader:
    """Builds filesystem configurations from YAML files, .env files and the environment."""

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self.environ = environ

    def load_yaml(self, file_path: Union[str, Path]) -> Dict[str, Any]:
        """
        Load the filesystem section of a YAML configuration file.

        A missing file yields an empty dict. A malformed file raises.
        """
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                root = yaml.safe_load(f)
        except FileNotFoundError:
            logger.warning(f"Configuration file not found: {file_path}. Using defaults.")
            return {}
        except yaml.YAMLError as e:
            logger.error(f"Error parsing YAML file {file_path}: {e}")
            raise

        if root is None:
            return {}
        if not isinstance(root, dict):
            raise ValueError(f"Configuration YAML {file_path} root is not a mapping: {type(root).__name__}")

        section = root.get(S3Config.YAML_ROOT_KEY, {})
        if section is None:
            return {}
        if not isinstance(section, dict):
            raise ValueError(f"Key '{S3Config.YAML_ROOT_KEY}' is not a mapping in {file_path}")

        logger.info(f"Loaded {len(section)} filesystem settings from {file_path}")
        return section

    def load(
        self,
        file_path: Optional[Union[str, Path]] = None,
        env_file: Optional[Union[str, Path]] = None,
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> S3FileSystemConfiguration:
        """
        Build a configuration.

        Precedence, lowest first: ``env_file``, the environment (``os.environ``
        or the mapping given to the loader), the YAML file, explicit overrides.

        Args:
            file_path: Optional YAML file with an 's3' section
            env_file: Optional .env file; the process environment is not modified
            overrides: Values that win over every other source

        Returns:
            A validated S3FileSystemConfiguration

        Raises:
            pydantic.ValidationError: If a value is invalid
        """
        environ = dict(os.environ if self.environ is None else self.environ)
        if env_file is not None:
            values = {key: value for key, value in dotenv_values(env_file).items() if value is not None}
            if values:
                logger.info(f"Loaded {len(values)} variable(s) from {env_file}")
            else:
                logger.warning(f"No variables loaded from env file: {env_file}")
            # Variables already set take precedence over the file
            for key, value in values.items():
                environ.setdefault(key, value)

        data: Dict[str, Any] = {}
        if file_path is not None:
            data.update(self.load_yaml(file_path))
        if overrides:
            data.update(overrides)

        return S3FileSystemConfiguration.from_env(environ, **data)
