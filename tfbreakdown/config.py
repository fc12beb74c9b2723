"""YAML configuration for the command line tool."""
from dataclasses import dataclass, field, fields
from typing import List, Optional

import yaml

from .errors import ConfigError


@dataclass
class Settings:
    """Scan and output settings."""
    pretty: bool = True
    verbose: bool = False
    output: Optional[str] = None
    exclude_dirs: List[str] = field(default_factory=list)

    def merge(self, **overrides) -> 'Settings':
        """Return a copy with every override that is not None applied."""
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        values.update({key: value for key, value in overrides.items() if value is not None})
        return Settings(**values)


def load_settings(config_path: Optional[str] = None) -> Settings:
    """Load settings from a YAML file, or return the defaults when no file is given."""
    if not config_path:
        return Settings()

    try:
        with open(config_path) as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f'Cannot read config file {config_path}: {e}') from e
    except yaml.YAMLError as e:
        raise ConfigError(f'Invalid YAML in config file {config_path}: {e}') from e

    if data is None:
        return Settings()
    if not isinstance(data, dict):
        raise ConfigError(f'Config file {config_path} must contain a mapping')

    known = {f.name for f in fields(Settings)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f'Unknown config keys in {config_path}: {", ".join(map(str, unknown))}')

    for key in ('pretty', 'verbose'):
        if key in data and not isinstance(data[key], bool):
            raise ConfigError(f'Config key "{key}" must be true or false')
    if data.get('output') is not None and not isinstance(data['output'], str):
        raise ConfigError('Config key "output" must be a path')

    exclude_dirs = data.get('exclude_dirs') or []
    if not isinstance(exclude_dirs, list) or not all(isinstance(d, str) for d in exclude_dirs):
        raise ConfigError('Config key "exclude_dirs" must be a list of directory names')
    data['exclude_dirs'] = exclude_dirs

    return Settings(**data)
