import json
import os
from pathlib import Path

from .errors import ConfigError


AUTH_ENV_VAR = "LABS_AUTH"
ENVIRONMENT_ENV_VAR = "LABS_ENV"
DEBUG_ENV_VAR = "DEBUG"

DEFAULT_CONFIG = {
    "timeout_seconds": 30,
    "algorithms": ["RS256", "RS384", "RS512"],
    "leeway_seconds": 0,
    # LABS_ENV value -> exchange endpoint used instead of the token callback
    "environments": {
        "local": "http://localhost/exercise/squirrel/scm_api_callback",
        "dev": "http://labs-exercise-test-508391972.ap-southeast-2.elb.amazonaws.com/exercise/squirrel/scm_api_callback",
    },
}


def load_config(path):
    """
    Load JSON config file and override DEFAULT_CONFIG.
    If no path is given, just return the defaults.
    """
    config = DEFAULT_CONFIG.copy()

    if path is None:
        return config

    cfg_path = Path(path)

    if not cfg_path.is_file():
        raise ConfigError("Config file not found: {}".format(cfg_path))

    try:
        with cfg_path.open("r", encoding="utf-8") as f:
            user_cfg = json.load(f)
    except (OSError, ValueError) as exc:
        raise ConfigError("Could not load config file {}: {}".format(cfg_path, exc)) from exc

    if not isinstance(user_cfg, dict):
        raise ConfigError("Config file must contain a JSON object at the root")

    for key, value in user_cfg.items():
        config[key] = value

    return config


def get_auth_token(environ=None):
    if environ is None:
        environ = os.environ

    token = environ.get(AUTH_ENV_VAR, "")
    if token == "":
        raise ConfigError("Missing environment variable {}".format(AUTH_ENV_VAR))
    return token


def endpoint_override(config, environ=None):
    """
    Fixed exchange endpoint for the environment named in LABS_ENV, or None
    when the endpoint should come from the token's callback claim.
    """
    if environ is None:
        environ = os.environ

    name = environ.get(ENVIRONMENT_ENV_VAR, "")
    if name == "":
        return None

    environments = config.get("environments", {})
    return environments.get(name)


def debug_from_env(environ=None):
    if environ is None:
        environ = os.environ
    return environ.get(DEBUG_ENV_VAR) == "TRUE"
