"""Configuration module for canvastag."""

from .settings import get_db_path, get_env_var, validate_all_env_vars

__all__ = ["get_db_path", "get_env_var", "validate_all_env_vars"]
