from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from pydantic import ValidationError

from .models import Token
from .network_catalog import NetworkCatalog, NetworkNotFound
from .sources import SourceProvider

LOGGER = logging.getLogger('token_listing.registry')

# UTXO-style network whose catalog regex is not enforced at ingestion or validation.
LEGACY_NETWORK_ID = 1


class RegistryError(Exception):
    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class TokenDecodeError(RegistryError):
    def __init__(self, uid: str, detail: str) -> None:
        super().__init__(f'token {uid}: cannot decode metadata: {detail}')
        self.uid = uid


class MetadataReadError(RegistryError):
    def __init__(self, uid: str, detail: str) -> None:
        super().__init__(f'token {uid}: cannot read metadata: {detail}')
        self.uid = uid


class LogoReadError(RegistryError):
    def __init__(self, uid: str, detail: str) -> None:
        super().__init__(f'token {uid}: cannot read logo: {detail}')
        self.uid = uid


class DuplicateToken(RegistryError):
    def __init__(self, uid: str) -> None:
        super().__init__(f'token {uid} is declared more than once')
        self.uid = uid


class UnknownNetwork(RegistryError, NetworkNotFound):
    def __init__(self, uid: str, network_id: int) -> None:
        detail = f'token {uid}: network {network_id} not found'
        Exception.__init__(self, detail)
        self.detail = detail
        self.network_id = network_id
        self.uid = uid


class AddressFormatMismatch(RegistryError):
    def __init__(self, uid: str, network_id: int, address: str) -> None:
        super().__init__(
            f'token {uid}: address {address} does not match the format of network {network_id}'
        )
        self.uid = uid
        self.network_id = network_id
        self.address = address


class DuplicateAddress(RegistryError):
    def __init__(self, uid: str, network_id: int, address: str, owner: str) -> None:
        super().__init__(
            f'token {uid}: address {address} on network {network_id} is already claimed by {owner}'
        )
        self.uid = uid
        self.network_id = network_id
        self.address = address
        self.owner = owner


@dataclass
class _Staging:
    tokens: dict[str, Token] = field(default_factory=dict)
    logos: dict[str, bytes] = field(default_factory=dict)
    featured: set[str] = field(default_factory=set)
    network_addresses: dict[int, dict[str, str]] = field(default_factory=dict)
    price_index: dict[int, str] = field(default_factory=dict)


class TokenRegistry:
    def __init__(
        self,
        catalog: NetworkCatalog,
        legacy_network_id: int = LEGACY_NETWORK_ID,
        price_index_keyed_by_network: bool = False
    ) -> None:
        self.catalog = catalog
        self.legacy_network_id = legacy_network_id
        self.price_index_keyed_by_network = price_index_keyed_by_network
        self._state = _Staging()
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def ingest(self, source: SourceProvider) -> int:
        if self._frozen:
            raise RegistryError('registry has already been loaded')

        staging = _Staging()
        for uid in source.identifiers():
            self._ingest_one(staging, source, uid)

        self._state = staging
        self._frozen = True
        LOGGER.info(
            'ingested tokens=%d featured=%d networks=%d',
            len(staging.tokens),
            len(staging.featured),
            len(staging.network_addresses)
        )
        return len(staging.tokens)

    def _ingest_one(self, staging: _Staging, source: SourceProvider, uid: str) -> None:
        try:
            raw = source.read_metadata(uid)
        except OSError as exc:
            raise MetadataReadError(uid, str(exc)) from exc
        try:
            token = Token.model_validate_json(raw)
        except ValidationError as exc:
            raise TokenDecodeError(uid, str(exc)) from exc

        try:
            logo = source.read_logo(uid)
        except OSError as exc:
            raise LogoReadError(uid, str(exc)) from exc

        if uid in staging.tokens:
            raise DuplicateToken(uid)
        staging.tokens[uid] = token
        staging.logos[uid] = logo
        if token.is_featured:
            staging.featured.add(uid)

        for address in token.addresses:
            entry = self.catalog.find(address.network_id)
            if entry is None:
                raise UnknownNetwork(uid, address.network_id)
            if address.network_id != self.legacy_network_id and not entry.matches(address.address):
                raise AddressFormatMismatch(uid, address.network_id, address.address)

            claimed = staging.network_addresses.setdefault(address.network_id, {})
            owner = claimed.get(address.address)
            if owner is not None:
                raise DuplicateAddress(uid, address.network_id, address.address, owner)
            claimed[address.address] = uid

            if self.price_index_keyed_by_network:
                staging.price_index[address.network_id] = uid

        if not self.price_index_keyed_by_network and token.coin_market_cap_id > 0:
            staging.price_index.setdefault(token.coin_market_cap_id, uid)

        LOGGER.debug('loaded token uid=%s addresses=%d', uid, len(token.addresses))

    @property
    def tokens(self) -> Mapping[str, Token]:
        return MappingProxyType(self._state.tokens)

    @property
    def featured(self) -> frozenset[str]:
        return frozenset(self._state.featured)

    @property
    def network_addresses(self) -> Mapping[int, Mapping[str, str]]:
        return MappingProxyType(
            {network_id: MappingProxyType(addresses) for network_id, addresses in self._state.network_addresses.items()}
        )

    @property
    def price_index(self) -> Mapping[int, str]:
        """Price id to token uid, or network id to token uid in compatibility mode."""
        return MappingProxyType(self._state.price_index)

    def get(self, uid: str) -> Token | None:
        return self._state.tokens.get(uid)

    def logo(self, uid: str) -> bytes | None:
        return self._state.logos.get(uid)

    def token_for_address(self, network_id: int, address: str) -> Token | None:
        uid = self._state.network_addresses.get(network_id, {}).get(address)
        if uid is None:
            return None
        return self._state.tokens[uid]

    def featured_tokens(self) -> list[Token]:
        return [self._state.tokens[uid] for uid in sorted(self._state.featured)]

    def __len__(self) -> int:
        return len(self._state.tokens)

    def __contains__(self, uid: object) -> bool:
        return uid in self._state.tokens


def load_registry(
    catalog: NetworkCatalog,
    source: SourceProvider,
    legacy_network_id: int = LEGACY_NETWORK_ID,
    price_index_keyed_by_network: bool = False
) -> TokenRegistry:
    registry = TokenRegistry(
        catalog,
        legacy_network_id=legacy_network_id,
        price_index_keyed_by_network=price_index_keyed_by_network
    )
    registry.ingest(source)
    return registry
