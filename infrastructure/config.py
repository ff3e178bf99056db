from __future__ import annotations

import os
from decimal import Decimal
from typing import Mapping, Optional

from dotenv import load_dotenv

from domain.currency import ScaleMethod, parse_amount
from domain.errors import ConfigurationError, InvalidAmountError
from domain.settings import STORAGE_BACKENDS, LedgerSettings

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _get_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{key} must be an integer, got {raw!r}.") from exc


def settings_from_env(env: Mapping[str, str]) -> LedgerSettings:
    """Build `LedgerSettings` from a mapping of environment variables."""

    try:
        scale_method = ScaleMethod.parse(env.get("ECONOMY_METHOD", "points"))
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc

    try:
        starting_balance = parse_amount(env.get("STARTING_BALANCE", "0"))
    except InvalidAmountError as exc:
        raise ConfigurationError(f"STARTING_BALANCE is not a number: {exc}") from exc
    if starting_balance < 0:
        raise ConfigurationError("STARTING_BALANCE cannot be negative.")

    backend = env.get("STORAGE_BACKEND", "yaml").strip().lower()
    if backend not in STORAGE_BACKENDS:
        raise ConfigurationError(
            f"STORAGE_BACKEND must be one of {', '.join(STORAGE_BACKENDS)}; got {backend!r}."
        )

    save_interval = _get_int(env, "SAVE_INTERVAL_TICKS", 6000)
    if save_interval <= 0:
        raise ConfigurationError("SAVE_INTERVAL_TICKS must be positive.")

    postgres_params = {
        "host": env.get("PG_HOST", "localhost"),
        "port": _get_int(env, "PG_PORT", 5432),
        "dbname": env.get("PG_DATABASE", "xpledger"),
        "user": env.get("PG_USER", "xpledger"),
        "password": env.get("PG_PASSWORD", ""),
    }

    return LedgerSettings(
        scale_method=scale_method,
        starting_balance=Decimal(starting_balance),
        storage_backend=backend,
        accounts_file=env.get("ACCOUNTS_FILE", "accounts.yml"),
        db_path=env.get("DB_PATH", "ledger.db"),
        table_prefix=env.get("TABLE_PREFIX", ""),
        postgres_params=postgres_params,
        save_interval_ticks=save_interval,
        debug=env.get("DEBUG", "").strip().lower() in _TRUE_VALUES,
    )


def load_settings(dotenv_path: Optional[str] = None) -> LedgerSettings:
    """Read `.env` (if present) into the environment, then build settings."""

    load_dotenv(dotenv_path)
    return settings_from_env(os.environ)
