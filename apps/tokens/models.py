from __future__ import annotations

from enum import IntEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

TOKEN_TYPES = ('ERC20', 'ERC721', 'ERC1155', 'SPL', 'SPL2022', 'COIN')

# 0: none, 1: full matrix, 2: authorized transfer, 3: permit, 4: gas-transfer, 5: co-signer (SOL only)
GAS_SPONSORED_STRATEGIES = range(0, 6)

MAX_DECIMALS = 18

PRICE_ID_UNSET = -1


class NetworkType(IntEnum):
    UNSPECIFIED = 0
    ETH_LIKE = 1
    TRX = 2
    SOL = 3
    UTXO = 4


class CoinType(IntEnum):
    """Known SLIP-0044 coin types. BTC stays the zero value for legacy compatibility."""

    BTC = 0
    ETH = 60
    TRX = 195
    SOL = 501
    BNB = 714


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, extra='ignore')

    @model_validator(mode='before')
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        # null reads the same as an absent field
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class Explorer(_Record):
    base_url: str = ''
    address_template: str = ''
    transaction_template: str = ''
    token_template: str = ''
    block_template: str = ''


class Network(_Record):
    id: int
    chain_id: int = 0
    network_type: NetworkType = NetworkType.UNSPECIFIED
    coin_type: int = CoinType.BTC
    name: str = ''
    symbol: str = ''
    decimals: int = 0
    icon_png_url: str = ''
    icon_svg_url: str = ''
    is_testnet: bool = False
    is_active: bool = False
    address_regex: str = ''
    explorer: Explorer = Field(default_factory=Explorer)
    coin_marketcap_id: int = 0


class TokenAddress(_Record):
    address: str = ''
    token_uid: str = ''
    network_id: int = 0
    is_verified: bool = False
    decimals: int = Field(default=0, ge=0)
    is_native: bool = False
    token_type: str = ''
    upgradeable: bool = False
    has_blue_checkmark: bool = False
    gas_sponsored_strategy: int = 0
    name: str = ''
    symbol: str = ''
    logo_png_url: str = ''
    logo_svg_url: str = ''


class Token(_Record):
    uuid: str = ''
    name: str = ''
    symbol: str = ''
    has_gas_sponsored: bool = False
    is_stable_token: bool = False
    wrapped_token_uuid: str = ''
    logo_png_url: str = ''
    logo_svg_url: str = ''
    description: str = ''
    coin_market_cap_id: int = PRICE_ID_UNSET
    is_featured: bool = False
    # Lower index means higher priority; contributed tokens start at 100000.
    order_index: int = 0
    website_url: str = ''
    x_url: str = ''
    discord_url: str = ''
    whitepaper_url: str = ''
    # Must answer with price_usd, volume_24h, volume_change_24h and
    # percent_change_{1h,24h,7d,30d,90d}.
    live_price_url: str = ''
    tags: tuple[str, ...] = ()
    is_scam: bool = False
    is_disabled: bool = False
    addresses: tuple[TokenAddress, ...] = ()


def dump_record(record: BaseModel) -> dict[str, Any]:
    return record.model_dump(mode='json')
