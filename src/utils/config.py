"""
Runtime configuration.

Values come from the environment (a .env file in the working directory is
loaded first). Database credentials may alternatively live in a KEY=VALUE
file at ~/.gexmonitor_db_creds.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Dict
from dotenv import load_dotenv

CREDS_FILE = Path.home() / ".gexmonitor_db_creds"

PUT_GAMMA_POLICIES = ('native', 'negate')
KV_BACKENDS = ('memory', 'postgres')


@dataclass
class Settings:
    """Container for all tunables"""

    # Schwab market data credentials
    schwab_app_key: Optional[str] = None
    schwab_secret: Optional[str] = None
    schwab_refresh_token: Optional[str] = None

    # Key-value store
    kv_backend: str = 'memory'
    db_config: Dict = field(default_factory=dict)

    # GEX engine
    put_gamma_policy: str = 'native'
    wall_band: Optional[float] = 0.40
    atm_strike_count: int = 5

    # IV history
    iv_history_cap: int = 96
    iv_history_ttl: int = 86400 * 2

    # Services
    poll_interval: int = 60
    api_port: int = 8081

    def __post_init__(self):
        if self.kv_backend not in KV_BACKENDS:
            raise ValueError(f"Invalid KV_BACKEND '{self.kv_backend}', expected one of {KV_BACKENDS}")
        if self.put_gamma_policy not in PUT_GAMMA_POLICIES:
            raise ValueError(f"Invalid GEX_PUT_GAMMA_POLICY '{self.put_gamma_policy}', "
                             f"expected one of {PUT_GAMMA_POLICIES}")
        if self.wall_band is not None and not 0 < self.wall_band <= 1:
            raise ValueError(f"GEX_WALL_BAND must be in (0, 1], got {self.wall_band}")
        if self.atm_strike_count < 1:
            raise ValueError(f"GEX_ATM_STRIKES must be positive, got {self.atm_strike_count}")
        if self.iv_history_cap < 1:
            raise ValueError(f"IV_HISTORY_CAP must be positive, got {self.iv_history_cap}")

    @property
    def has_schwab_credentials(self) -> bool:
        return all([self.schwab_app_key, self.schwab_secret, self.schwab_refresh_token])


def load_db_credentials(creds_file: Path = CREDS_FILE) -> dict:
    """
    Load database credentials.

    Environment variables win; the credentials file fills whatever is unset.
    """
    creds = {}
    if creds_file.exists():
        with open(creds_file, 'r') as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith('#') and '=' in line:
                    key, value = line.split('=', 1)
                    creds[key.strip()] = value.strip()

    def pick(key, default):
        return os.getenv(key) or creds.get(key, default)

    return {
        'host': pick('DB_HOST', 'localhost'),
        'port': int(pick('DB_PORT', '5432')),
        'database': pick('DB_NAME', 'gex_db'),
        'user': pick('DB_USER', 'gex_user'),
        'password': pick('DB_PASSWORD', ''),
    }


def _parse_band(raw: str) -> Optional[float]:
    if raw.strip().lower() in ('', 'none', 'off'):
        return None
    return float(raw)


def load_settings() -> Settings:
    """Build Settings from the environment"""
    load_dotenv()

    kv_backend = os.getenv('KV_BACKEND', 'memory').lower()

    return Settings(
        schwab_app_key=os.getenv('SCHWAB_APP_KEY'),
        schwab_secret=os.getenv('SCHWAB_SECRET'),
        schwab_refresh_token=os.getenv('SCHWAB_REFRESH_TOKEN'),
        kv_backend=kv_backend,
        db_config=load_db_credentials() if kv_backend == 'postgres' else {},
        put_gamma_policy=os.getenv('GEX_PUT_GAMMA_POLICY', 'native').lower(),
        wall_band=_parse_band(os.getenv('GEX_WALL_BAND', '0.40')),
        atm_strike_count=int(os.getenv('GEX_ATM_STRIKES', 5)),
        iv_history_cap=int(os.getenv('IV_HISTORY_CAP', 96)),
        iv_history_ttl=int(os.getenv('IV_HISTORY_TTL', 86400 * 2)),
        poll_interval=int(os.getenv('POLL_INTERVAL', 60)),
        api_port=int(os.getenv('API_PORT', 8081)),
    )
