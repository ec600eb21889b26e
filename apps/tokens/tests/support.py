from __future__ import annotations

import io
import json
import random
from pathlib import Path
from typing import Any

from PIL import Image

from apps.tokens.network_catalog import NetworkCatalog
from apps.tokens.sources import MemorySource

NETWORKS: list[dict[str, Any]] = [
    {
        'id': 1,
        'chain_id': 0,
        'network_type': 4,
        'coin_type': 0,
        'name': 'Bitcoin',
        'symbol': 'BTC',
        'decimals': 8,
        'icon_png_url': 'https://assets.example.com/networks/1.png',
        'is_testnet': False,
        'is_active': True,
        'address_regex': '^(bc1|[13])[a-zA-HJ-NP-Z0-9]{25,39}$',
        'explorer': {
            'base_url': 'https://mempool.space',
            'address_template': '/address/{address}',
            'transaction_template': '/tx/{hash}'
        },
        'coin_marketcap_id': 1
    },
    {
        'id': 2,
        'chain_id': 1,
        'network_type': 1,
        'coin_type': 60,
        'name': 'Ethereum',
        'symbol': 'ETH',
        'decimals': 18,
        'is_active': True,
        'address_regex': '^0x[a-fA-F0-9]{40}$',
        'coin_marketcap_id': 1027
    },
    {
        'id': 3,
        'chain_id': 0,
        'network_type': 3,
        'coin_type': 501,
        'name': 'Solana',
        'symbol': 'SOL',
        'decimals': 9,
        'is_active': True,
        'address_regex': '^[1-9A-HJ-NP-Za-km-z]{32,44}$',
        'coin_marketcap_id': 5426
    }
]

USDC_ETHEREUM = '0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48'


def png_bytes(size: tuple[int, int] = (64, 64), image_format: str = 'PNG', seed: int = 7) -> bytes:
    # Noise keeps the encoded file comfortably above the minimum logo size.
    rng = random.Random(seed)
    image = Image.frombytes('RGB', size, rng.randbytes(size[0] * size[1] * 3))
    buffer = io.BytesIO()
    image.save(buffer, format=image_format)
    return buffer.getvalue()


def catalog(networks: list[dict[str, Any]] | None = None) -> NetworkCatalog:
    return NetworkCatalog.from_json(json.dumps(NETWORKS if networks is None else networks))


def address_payload(uid: str, network_id: int, address: str, **overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        'address': address,
        'token_uid': uid,
        'network_id': network_id,
        'is_verified': True,
        'decimals': 18,
        'is_native': False,
        'token_type': 'COIN',
        'gas_sponsored_strategy': 0,
        'name': uid,
        'symbol': uid,
        'logo_png_url': f'https://assets.example.com/tokens/{uid}.png'
    }
    payload.update(overrides)
    return payload


def token_payload(uid: str, addresses: list[dict[str, Any]] | None = None, **overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        'uuid': uid,
        'name': uid,
        'symbol': uid,
        'description': f'{uid} token',
        'logo_png_url': f'https://assets.example.com/tokens/{uid}.png',
        'coin_market_cap_id': 1027,
        'order_index': 100000,
        'website_url': 'https://example.com',
        'tags': ['defi'],
        'addresses': addresses if addresses is not None else [address_payload(uid, 1, f'legacy-{uid}')]
    }
    payload.update(overrides)
    return payload


def memory_source(tokens: dict[str, dict[str, Any]], logos: dict[str, bytes | None] | None = None) -> MemorySource:
    logos = logos or {}
    records: dict[str, tuple[bytes, bytes | None]] = {}
    for uid, payload in tokens.items():
        records[uid] = (json.dumps(payload).encode('utf-8'), logos.get(uid, png_bytes()))
    return MemorySource(records)


def write_token_tree(root: Path, tokens: dict[str, dict[str, Any]], logo: bytes | None = None) -> None:
    logo = png_bytes() if logo is None else logo
    for uid, payload in tokens.items():
        token_dir = root / uid
        token_dir.mkdir(parents=True)
        (token_dir / 'meta.json').write_text(json.dumps(payload, indent=2), encoding='utf-8')
        (token_dir / 'logo.png').write_bytes(logo)


def write_workspace(root: Path, tokens: dict[str, dict[str, Any]]) -> None:
    networks_dir = root / 'networks'
    networks_dir.mkdir(parents=True)
    (networks_dir / 'networks.json').write_text(json.dumps(NETWORKS), encoding='utf-8')
    write_token_tree(root / 'tokens', tokens)
