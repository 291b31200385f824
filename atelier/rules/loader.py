import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from atelier.rules.models import Rules, default_rules

RULES_ENV_VAR = "ATELIER_RULES_PATH"


def load_rules(path: Path) -> Rules:
    """
    Load and validate the rules file.
    Raises FileNotFoundError if file missing.
    Raises ValueError if the YAML or schema is invalid.
    """
    if not path.exists():
        raise FileNotFoundError(f"Rules file not found at: {path}")

    with open(path, encoding="utf-8") as f:
        content = f.read()

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML syntax in rules file: {e}") from e

    try:
        return Rules.model_validate(data)
    except ValidationError as e:
        # Re-raise with a clear message for the caller/logs
        raise ValueError(f"Rules validation failed:\n{e}") from e


def load_rules_from_env(env_var: str = RULES_ENV_VAR) -> Rules:
    """Load rules from the path named by env_var, or fall back to defaults."""
    path = os.environ.get(env_var)
    if not path:
        return default_rules()
    return load_rules(Path(path))
