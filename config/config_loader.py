import json
import os
from datetime import datetime
from pathlib import Path

# Resolved against this module, not the working directory
DEFAULT_CONFIG_PATH = str(Path(__file__).resolve().parent / "runtime_config.json")

DEFAULT_CONFIG = {
    "run_interval_ms": 500,
    "max_steps": 10_000,
    "tape_window": 11,
    "default_program": "binaryIncrement",
    "log_steps": True,
    "output_directory": "logs/",
    "log_file_prefix": "turing_",
    "results_directory": "results/"
}

# Expected types for validation
CONFIG_SCHEMA = {
    "run_interval_ms": int,
    "max_steps": int,
    "tape_window": int,
    "default_program": str,
    "log_steps": bool,
    "output_directory": str,
    "log_file_prefix": str,
    "results_directory": str
}


def validate_config(config):
    for key, expected_type in CONFIG_SCHEMA.items():
        if key not in config:
            raise ValueError(f"Missing required configuration key: {key}")
        # bool is an int subclass; don't let True pass as a step count
        if expected_type is int and isinstance(config[key], bool):
            raise TypeError(f"Config key '{key}' expected {expected_type}, got {type(config[key])}.")
        if not isinstance(config[key], expected_type):
            raise TypeError(f"Config key '{key}' expected {expected_type}, got {type(config[key])}.")

    if config["run_interval_ms"] < 0:
        raise ValueError("run_interval_ms must not be negative.")
    if config["max_steps"] <= 0:
        raise ValueError("max_steps must be positive.")
    if config["tape_window"] <= 0:
        raise ValueError("tape_window must be positive.")


def load_config(path=DEFAULT_CONFIG_PATH, verbose=True):
    if not os.path.exists(path):
        raise FileNotFoundError(f"Configuration file not found at: {path}")

    with open(path, "r", encoding="utf-8") as f:
        user_config = json.load(f)

    # Merge defaults with overrides
    config = DEFAULT_CONFIG.copy()
    config.update(user_config)

    # Validate schema
    validate_config(config)

    # Validate output directory
    os.makedirs(config["output_directory"], exist_ok=True)

    if verbose:
        print(f"[{datetime.now()}] Loaded config:")
        for key, value in config.items():
            print(f"  {key}: {value}")

    return config


def save_config(config, path=DEFAULT_CONFIG_PATH):
    validate_config(config)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(config, f, indent=4)
