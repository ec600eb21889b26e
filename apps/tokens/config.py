from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {'1', 'true', 'yes', 'y', 'on'}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return int(value.strip())


@dataclass(frozen=True)
class Settings:
    root_dir: Path
    tokens_dir: str
    networks_path: str
    dist_dir: str
    template_token: str
    legacy_network_id: int
    price_index_keyed_by_network: bool
    log_level: str

    def resolve(self, path_value: str) -> Path:
        path = Path(path_value)
        if path.is_absolute():
            return path
        return self.root_dir / path

    @property
    def tokens_path(self) -> Path:
        return self.resolve(self.tokens_dir)

    @property
    def catalog_path(self) -> Path:
        return self.resolve(self.networks_path)

    @property
    def dist_path(self) -> Path:
        return self.resolve(self.dist_dir)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings(
        root_dir=Path(os.getenv('TOKEN_LISTING_ROOT', '.')),
        tokens_dir=os.getenv('TOKENS_DIR', 'tokens'),
        networks_path=os.getenv('NETWORKS_PATH', 'networks/networks.json'),
        dist_dir=os.getenv('DIST_DIR', 'dist'),
        template_token=os.getenv('TEMPLATE_TOKEN', '_example'),
        legacy_network_id=_env_int('LEGACY_NETWORK_ID', 1),
        price_index_keyed_by_network=_env_bool('PRICE_INDEX_KEYED_BY_NETWORK', False),
        log_level=os.getenv('LOG_LEVEL', 'INFO').strip().upper() or 'INFO'
    )
