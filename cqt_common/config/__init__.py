"""Configuration helpers for cqt_common."""

from .env import parse_bool_env, parse_csv_env

__all__ = ["parse_bool_env", "parse_csv_env"]
