from __future__ import annotations

import json
import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .models import dump_record
from .token_registry import TokenRegistry

LOGGER = logging.getLogger('token_listing.artifacts')

TOKENS_FILE = 'tokens.json'
FEATURED_FILE = 'tokens.featured.json'
TOKENS_SUBDIR = 'tokens'
ADDRESS_RECORD_FILE = 'token_address.json'


class EmitError(Exception):
    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


@dataclass(frozen=True)
class EmitSummary:
    out_dir: Path
    tokens: int
    featured: int
    address_files: int


def _path_segment(value: str, what: str) -> str:
    if not value or value in {'.', '..'} or any(sep in value for sep in ('/', '\\', '\x00')):
        raise EmitError(f'{what} {value!r} cannot be used as a file name')
    return value


class ArtifactEmitter:
    """Writes the derived asset tree for a loaded registry.

    Layout under ``out_dir``::

        tokens.json                                  all tokens
        tokens.featured.json                         featured tokens
        <network_id>/<address>.json                  owning token, full record
        <network_id>/<address>/token_address.json    the address record only
        tokens/<uid>.json, tokens/<uid>.png          token record and logo copy

    A price-id keyed artifact is not produced.
    """

    def __init__(self, registry: TokenRegistry, out_dir: Path) -> None:
        self.registry = registry
        self.out_dir = out_dir

    def emit(self) -> EmitSummary:
        self._reset_out_dir()

        tokens = self.registry.tokens
        uids = sorted(tokens)
        self._write_json(self.out_dir / TOKENS_FILE, [dump_record(tokens[uid]) for uid in uids])

        featured = self.registry.featured_tokens()
        self._write_json(self.out_dir / FEATURED_FILE, [dump_record(token) for token in featured])

        for network in self.registry.catalog.networks():
            self._mkdir(self.out_dir / str(network.id))

        address_files = 0
        for network_id, addresses in sorted(self.registry.network_addresses.items()):
            network_dir = self.out_dir / str(network_id)
            self._mkdir(network_dir)
            for address, uid in sorted(addresses.items()):
                segment = _path_segment(address, 'address')
                self._write_json(network_dir / f'{segment}.json', dump_record(tokens[uid]))
                address_files += 1

        tokens_dir = self.out_dir / TOKENS_SUBDIR
        self._mkdir(tokens_dir)
        for uid in uids:
            segment = _path_segment(uid, 'token uid')
            self._write_json(tokens_dir / f'{segment}.json', dump_record(tokens[uid]))
            logo = self.registry.logo(uid)
            if logo is None:
                raise EmitError(f'token {uid} has no logo')
            self._write_bytes(tokens_dir / f'{segment}.png', logo)

        for uid in uids:
            for address in tokens[uid].addresses:
                address_dir = self.out_dir / str(address.network_id) / _path_segment(address.address, 'address')
                self._mkdir(address_dir)
                self._write_json(address_dir / ADDRESS_RECORD_FILE, dump_record(address))

        LOGGER.info('skipping price id index artifact; not part of the asset tree')
        summary = EmitSummary(
            out_dir=self.out_dir,
            tokens=len(uids),
            featured=len(featured),
            address_files=address_files
        )
        LOGGER.info(
            'emitted assets out_dir=%s tokens=%d featured=%d address_files=%d',
            summary.out_dir,
            summary.tokens,
            summary.featured,
            summary.address_files
        )
        return summary

    def _reset_out_dir(self) -> None:
        try:
            if self.out_dir.exists():
                shutil.rmtree(self.out_dir)
            self.out_dir.mkdir(parents=True)
        except OSError as exc:
            raise EmitError(f'cannot reset output directory {self.out_dir}: {exc}') from exc

    @staticmethod
    def _mkdir(path: Path) -> None:
        try:
            path.mkdir(exist_ok=True)
        except OSError as exc:
            raise EmitError(f'cannot create {path}: {exc}') from exc

    @staticmethod
    def _write_json(path: Path, payload: Any) -> None:
        try:
            path.write_text(json.dumps(payload, indent=2) + '\n', encoding='utf-8')
        except OSError as exc:
            raise EmitError(f'cannot write {path}: {exc}') from exc

    @staticmethod
    def _write_bytes(path: Path, payload: bytes) -> None:
        try:
            path.write_bytes(payload)
        except OSError as exc:
            raise EmitError(f'cannot write {path}: {exc}') from exc
