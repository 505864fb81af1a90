"""Layered configuration: defaults, ``runapi.json``/``runapi.yaml`` in the
working directory, an explicit file, then environment overrides."""

import json
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ValidationError

from runapi.errors import ConfigError

CONFIG_NAMES = ("runapi.json", "runapi.yaml", "runapi.yml")
ENV_OVERRIDES = {
    "RUNAPI_SHOWDOC_API_KEY": ("showdoc", "api_key"),
    "RUNAPI_SHOWDOC_API_TOKEN": ("showdoc", "api_token"),
}


class ScanConfig(BaseModel):
    dir: str = "."  # root for struct lookups
    scan: str = ""  # where documented handlers live, defaults to dir
    extra_dirs: list[str] = []
    include_vendor: bool = False


class OutputConfig(BaseModel):
    file: str = "api-docs.json"


class ShowDocConfig(BaseModel):
    url: str = ""
    api_key: str = ""
    api_token: str = ""
    enabled: bool = False


class Config(BaseModel):
    scan: ScanConfig = ScanConfig()
    output: OutputConfig = OutputConfig()
    showdoc: ShowDocConfig = ShowDocConfig()


def _deep_merge(base: dict, override: dict) -> dict:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def read_config_file(path: Path) -> dict[str, Any]:
    """Read one config file; .json with json, anything else as YAML."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"cannot read config file {path}: {e}") from e
    try:
        if path.suffix == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"cannot parse config file {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"config file {path} must contain a mapping")
    return data


def _resolve_dir(value: str, current_dir: Path) -> str:
    path = Path(value)
    if not path.is_absolute():
        path = current_dir / path
    return str(path.resolve())


def load_config(current_dir: Path | None = None, config_path: Path | None = None) -> Config:
    current_dir = Path(current_dir or Path.cwd())
    data: dict[str, Any] = Config().model_dump()

    for name in CONFIG_NAMES:
        candidate = current_dir / name
        if candidate.is_file():
            data = _deep_merge(data, read_config_file(candidate))
            break

    if config_path is not None:
        config_path = Path(config_path)
        if not config_path.is_file():
            raise ConfigError(f"config file not found: {config_path}")
        data = _deep_merge(data, read_config_file(config_path))

    for env_name, (section, key) in ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value:
            data.setdefault(section, {})[key] = value

    try:
        config = Config.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"invalid configuration: {e}") from e

    scan = config.scan
    scan.dir = _resolve_dir(scan.dir or ".", current_dir)
    scan.scan = _resolve_dir(scan.scan, current_dir) if scan.scan else scan.dir
    scan.extra_dirs = [_resolve_dir(d, current_dir) for d in scan.extra_dirs]
    output = Path(config.output.file)
    if not output.is_absolute():
        config.output.file = str(current_dir / output)
    return config


def create_default_config(path: Path) -> None:
    """Write a starter config file. YAML for .yaml/.yml paths, JSON otherwise."""
    data = Config().model_dump()
    data["showdoc"]["url"] = "https://www.showdoc.cc/server/api/open"
    if path.suffix in (".yaml", ".yml"):
        content = yaml.safe_dump(data, sort_keys=False)
    else:
        content = json.dumps(data, indent=2) + "\n"
    path.write_text(content, encoding="utf-8")
