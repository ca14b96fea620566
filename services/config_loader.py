import copy
import os
from pathlib import Path

import yaml
from dotenv import load_dotenv

DEFAULT_CONFIG = {
    "api": {
        "client": "http",
        "base_url": "http://localhost:8080",
        "timeout_seconds": 30,
        "source": "web",
    },
    "employee": {
        "id": "",
    },
    "dashboard": {
        "refresh_interval_minutes": 5,
    },
    "slack": {
        "enabled": False,
        "notify_channel": "",
    },
    "logging": {
        "level": "INFO",
        "file": "",
    },
}

# 環境変数 → (セクション, キー)
ENV_OVERRIDES = {
    "ATTENDANCE_API_BASE_URL": ("api", "base_url"),
    "ATTENDANCE_EMPLOYEE_ID": ("employee", "id"),
    "SLACK_NOTIFY_CHANNEL": ("slack", "notify_channel"),
}


def _deep_merge(base: dict, override: dict) -> dict:
    """ベース設定にオーバーライドをマージする"""
    result = copy.deepcopy(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config(path: str = "config.yaml") -> dict:
    """YAML設定ファイルをロードし、デフォルト設定とマージして返す"""
    config_path = Path(path)
    if config_path.exists():
        with open(config_path, "r", encoding="utf-8") as f:
            user_config = yaml.safe_load(f) or {}
        return _deep_merge(DEFAULT_CONFIG, user_config)
    return copy.deepcopy(DEFAULT_CONFIG)


def apply_env_overrides(config: dict) -> dict:
    """.env / 環境変数の値で設定を上書きする"""
    load_dotenv()
    result = copy.deepcopy(config)
    for env_name, (section, key) in ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value:
            result.setdefault(section, {})[key] = value
    return result
