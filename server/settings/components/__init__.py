"""Shared helpers for settings components."""

from pathlib import Path

from decouple import AutoConfig

# Project root: the directory holding `server/` and `config/`
BASE_DIR = Path(__file__).parent.parent.parent.parent

# Loads values from the environment first, then from `config/.env`
config = AutoConfig(search_path=BASE_DIR.joinpath('config'))
