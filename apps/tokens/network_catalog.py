from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .models import Network

LOGGER = logging.getLogger('token_listing.catalog')


class CatalogError(Exception):
    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class NetworkNotFound(LookupError):
    def __init__(self, network_id: int, detail: str | None = None) -> None:
        detail = detail or f'network {network_id} not found'
        super().__init__(detail)
        self.network_id = network_id
        self.detail = detail


def strict_end_anchors(pattern: str) -> str:
    """Rewrite bare ``$`` to ``\\Z`` so it no longer matches before a trailing newline."""
    out: list[str] = []
    escaped = False
    in_class = False
    negated = False
    class_chars = 0
    for char in pattern:
        if escaped:
            escaped = False
            class_chars += in_class
        elif char == '\\':
            escaped = True
        elif in_class:
            # ']' right after '[' or '[^' is a literal
            if char == ']' and class_chars > 0:
                in_class = False
            elif char == '^' and class_chars == 0 and not negated:
                negated = True
            else:
                class_chars += 1
        elif char == '[':
            in_class, negated, class_chars = True, False, 0
        elif char == '$':
            out.append(r'\Z')
            continue
        out.append(char)
    return ''.join(out)


@dataclass(frozen=True)
class CatalogEntry:
    network: Network
    matcher: re.Pattern[str]

    def matches(self, address: str) -> bool:
        # A match anywhere in the address counts; anchoring is up to the regex itself.
        return self.matcher.search(address) is not None


class NetworkCatalog:
    def __init__(self, networks: list[Network]) -> None:
        entries: dict[int, CatalogEntry] = {}
        for network in networks:
            if network.id in entries:
                raise CatalogError(f'duplicate network id {network.id}')
            try:
                matcher = re.compile(strict_end_anchors(network.address_regex))
            except re.error as exc:
                raise CatalogError(
                    f'network {network.id} has an invalid address_regex {network.address_regex!r}: {exc}'
                ) from exc
            entries[network.id] = CatalogEntry(network=network, matcher=matcher)
        self._entries = entries

    @classmethod
    def from_json(cls, raw: bytes | str) -> NetworkCatalog:
        try:
            payload: Any = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise CatalogError(f'network catalog is not valid JSON: {exc}') from exc
        if not isinstance(payload, list):
            raise CatalogError('network catalog must be a JSON array')

        networks: list[Network] = []
        for index, item in enumerate(payload):
            try:
                networks.append(Network.model_validate(item))
            except ValidationError as exc:
                raise CatalogError(f'network[{index}] is malformed: {exc}') from exc
        return cls(networks)

    @classmethod
    def load(cls, path: Path) -> NetworkCatalog:
        try:
            raw = path.read_bytes()
        except OSError as exc:
            raise CatalogError(f'cannot read network catalog {path}: {exc}') from exc
        catalog = cls.from_json(raw)
        LOGGER.info('loaded network catalog path=%s networks=%d', path, len(catalog))
        return catalog

    def get(self, network_id: int) -> CatalogEntry:
        entry = self._entries.get(network_id)
        if entry is None:
            raise NetworkNotFound(network_id)
        return entry

    def find(self, network_id: int) -> CatalogEntry | None:
        return self._entries.get(network_id)

    def networks(self) -> list[Network]:
        return [entry.network for entry in self._entries.values()]

    def __iter__(self) -> Iterator[CatalogEntry]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, network_id: object) -> bool:
        return network_id in self._entries
