import os

import toml
import yaml

from fileguard.errors import ConfigMissingError, ConfigParseError

DEFAULT_CONFIG_NAME = "fileguard.yaml"
DEFAULT_CONFIG_PATH = os.path.join(".", DEFAULT_CONFIG_NAME)
ENV_CONFIG_DIR_VAR = "FILEGUARD_CONFIG_DIR"

YAML_EXTENSIONS = (".yaml", ".yml")
TOML_EXTENSIONS = (".toml",)

REQUIRED_KEYS = ("inode", "event", "action")

DEFAULT_CONFIG_TEMPLATE = """\
# fileguard configuration
#
# inode:  file or directory to watch
# event:  one of IN_ACCESS, IN_ATTRIB, IN_CLOSE_WRITE, IN_CLOSE_NOWRITE,
#         IN_CREATE, IN_DELETE, IN_DELETE_SELF, IN_MODIFY, IN_MOVE_SELF,
#         IN_MOVED_FROM, IN_MOVED_TO, IN_OPEN, IN_UNMOUNT
# action: execute "<command>"  or  log <path>
#         quote a command that contains spaces: execute "make -C /srv/site"

inode: /tmp
event: IN_CREATE
action: log /tmp/fileguard.log
"""


def resolve_config_path(cli_config_path=None):
    """
    Pick the configuration file to load.

    Precedence:
      1. cli_config_path if it has a .yaml, .yml or .toml extension.
      2. Environment variable FILEGUARD_CONFIG_DIR (looking for fileguard.yaml).
      3. Default to ./fileguard.yaml.

    Returns:
        str: The configuration path.
    """
    if cli_config_path and cli_config_path.endswith(YAML_EXTENSIONS + TOML_EXTENSIONS):
        return cli_config_path
    if os.environ.get(ENV_CONFIG_DIR_VAR):
        return os.path.join(os.environ[ENV_CONFIG_DIR_VAR], DEFAULT_CONFIG_NAME)
    return DEFAULT_CONFIG_PATH


def load_config(config_path):
    """
    Load the watch configuration from a YAML or TOML file.

    Args:
        config_path (str): Path to the configuration file.

    Returns:
        dict: The 'inode', 'event' and 'action' strings.
    """
    if not os.path.isfile(config_path):
        raise ConfigMissingError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            if config_path.endswith(TOML_EXTENSIONS):
                config_data = toml.load(f)
            else:
                config_data = yaml.safe_load(f)
    except (yaml.YAMLError, toml.TomlDecodeError, UnicodeDecodeError) as e:
        raise ConfigParseError(f"Could not parse {config_path}: {e}")
    except OSError as e:
        raise ConfigMissingError(f"Unable to open file {config_path}: {e}")

    if not isinstance(config_data, dict):
        raise ConfigParseError(f"{config_path} must contain a mapping of settings")

    record = {}
    for key in REQUIRED_KEYS:
        value = config_data.get(key)
        if not isinstance(value, str) or not value.strip():
            raise ConfigParseError(f"{config_path}: '{key}' must be a non-empty string")
        record[key] = value.strip()
    return record


def create_default_config(config_path=DEFAULT_CONFIG_PATH):
    """
    Write a commented starter configuration unless the file already exists.

    Returns:
        bool: True if the file was created.
    """
    if os.path.exists(config_path):
        return False
    config_dir = os.path.dirname(config_path)
    if config_dir:
        os.makedirs(config_dir, exist_ok=True)
    with open(config_path, "w") as f:
        f.write(DEFAULT_CONFIG_TEMPLATE)
    return True
