from __future__ import annotations

# crossstitch/config.py
import os
from dataclasses import dataclass
from typing import Optional

import yaml
from dotenv import load_dotenv

# 配置解析顺序：
# 1) 环境变量（.env 中的值只在未设置时补齐）
# 2) config.yaml（SHOP_CONFIG 指定路径，否则项目根目录）
# 3) 默认值
_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
_PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))

BACKENDS = ("sqlite", "postgres")

_ENV_KEYS = {
    "db_backend": "DB_BACKEND",
    "db_path": "DB_PATH",
    "db_host": "DB_HOST",
    "db_port": "DB_PORT",
    "db_user": "DB_USER",
    "db_password": "DB_PASSWORD",
    "db_name": "DB_NAME",
    "db_sslmode": "DB_SSLMODE",
    "static_dir": "STATIC_DIR",
    "log_level": "LOG_LEVEL",
    "host": "HOST",
    "port": "PORT",
}

_PG_REQUIRED = ("db_host", "db_port", "db_user", "db_password", "db_name")


class ConfigError(RuntimeError):
    """Startup configuration is missing or invalid."""


@dataclass(frozen=True)
class Settings:
    db_backend: str = "sqlite"
    db_path: str = os.path.join(_PROJECT_ROOT, "crossstitch.db")
    db_host: Optional[str] = None
    db_port: Optional[str] = None
    db_user: Optional[str] = None
    db_password: Optional[str] = None
    db_name: Optional[str] = None
    db_sslmode: str = "disable"
    static_dir: str = os.path.join(_PACKAGE_DIR, "static")
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 8080


def _read_config_yaml(path: str | None) -> dict:
    cfg_path = path or os.environ.get("SHOP_CONFIG") or os.path.join(_PROJECT_ROOT, "config.yaml")
    if not os.path.exists(cfg_path):
        return {}
    with open(cfg_path, "r", encoding="utf-8") as f:
        cfg = yaml.safe_load(f) or {}
    if not isinstance(cfg, dict):
        raise ConfigError(f"config file {cfg_path} must contain a mapping")
    out = {}
    for k in _ENV_KEYS:
        v = cfg.get(k)
        if v is None:
            continue
        v = str(v).strip()
        if v:
            out[k] = v
    return out


def load_settings(config_path: str | None = None) -> Settings:
    load_dotenv(override=False)
    values: dict = _read_config_yaml(config_path)
    for field, env_name in _ENV_KEYS.items():
        v = os.environ.get(env_name)
        if v is not None and v.strip():
            values[field] = v.strip()

    backend = values.get("db_backend", Settings.db_backend).lower()
    if backend not in BACKENDS:
        raise ConfigError(f"unknown DB_BACKEND {backend!r}, expected one of {', '.join(BACKENDS)}")
    values["db_backend"] = backend

    if backend == "postgres":
        missing = [_ENV_KEYS[k] for k in _PG_REQUIRED if not values.get(k)]
        if missing:
            raise ConfigError("missing database settings: " + ", ".join(missing))

    if "port" in values:
        try:
            values["port"] = int(values["port"])
        except ValueError:
            raise ConfigError(f"PORT must be an integer, got {values['port']!r}")

    return Settings(**values)
