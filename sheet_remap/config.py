"""
Configuration loading.

Settings live in a YAML file and are merged over ``DEFAULTS``.  The resulting
dict is passed explicitly into every build call; nothing reads configuration
from module state.
"""

import os

import yaml

CONFIG_VERSION = 1

DEFAULTS = {
    "config_version": CONFIG_VERSION,
    # 1-based row holding the column headers of every source sheet
    "header_row": 1,
    # Text written instead of a formula that needs headers the output lacks
    "missing_header_prefix": "缺少",
    "missing_header_separator": "、",
    # Text written instead of a formula that cannot be moved at all
    "unresolved_placeholder": "F-Null",
    "summary_sheet_name": "汇总表",
    "back_link_text": "返回汇总表",
    "uncategorized_name": "未分类",
    # SUM or AVERAGE (合计 / 平均值 accepted)
    "footer_function": "SUM",
    "deduplicate_rows": True,
    "log_level": "INFO",
    "output_dir": "output",
}


def load_config(config_path=None, overrides=None):
    """Load configuration from a YAML file on top of ``DEFAULTS``.

    A missing or empty file yields the defaults.  *overrides* (e.g. values
    from the command line) win over both.
    """
    config = dict(DEFAULTS)
    if config_path and os.path.exists(config_path):
        with open(config_path, "r", encoding="utf-8") as f:
            user_config = yaml.safe_load(f) or {}
        if not isinstance(user_config, dict):
            raise ValueError(f"Config file {config_path} must contain a mapping")
        config.update(user_config)
    if overrides:
        config.update({k: v for k, v in overrides.items() if v is not None})
    validate_config(config)
    return config


def validate_config(config):
    """Raise ``ValueError`` for settings the builders cannot honour."""
    version = config.get("config_version")
    if version != CONFIG_VERSION:
        raise ValueError(
            f"Unsupported config_version {version!r}; expected {CONFIG_VERSION}"
        )
    header_row = config.get("header_row")
    if not isinstance(header_row, int) or header_row < 1:
        raise ValueError(f"header_row must be a positive integer, got {header_row!r}")
