from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import Protocol

LOGGER = logging.getLogger('token_listing.sources')

TEMPLATE_TOKEN = '_example'
META_FILENAME = 'meta.json'
LOGO_FILENAME = 'logo.png'


class SourceError(OSError):
    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class SourceProvider(Protocol):
    def identifiers(self) -> Iterator[str]: ...

    def read_metadata(self, uid: str) -> bytes: ...

    def read_logo(self, uid: str) -> bytes: ...


class DirectorySource:
    """Token records laid out as ``<root>/<uid>/meta.json`` plus ``<root>/<uid>/logo.png``."""

    def __init__(self, root: Path, reserved: str = TEMPLATE_TOKEN) -> None:
        self.root = root
        self.reserved = reserved

    def identifiers(self) -> Iterator[str]:
        try:
            entries = sorted(self.root.iterdir(), key=lambda item: item.name)
        except OSError as exc:
            raise SourceError(f'cannot list token directory {self.root}: {exc}') from exc

        for entry in entries:
            if not entry.is_dir():
                continue
            if entry.name == self.reserved:
                LOGGER.debug('skipping template token directory %s', entry)
                continue
            yield entry.name

    def metadata_path(self, uid: str) -> Path:
        return self.root / uid / META_FILENAME

    def logo_path(self, uid: str) -> Path:
        return self.root / uid / LOGO_FILENAME

    def read_metadata(self, uid: str) -> bytes:
        return self._read(self.metadata_path(uid))

    def read_logo(self, uid: str) -> bytes:
        return self._read(self.logo_path(uid))

    @staticmethod
    def _read(path: Path) -> bytes:
        try:
            return path.read_bytes()
        except OSError as exc:
            raise SourceError(f'cannot read {path}: {exc}') from exc


class MemorySource:
    def __init__(
        self,
        records: Mapping[str, tuple[bytes, bytes | None]],
        reserved: str = TEMPLATE_TOKEN
    ) -> None:
        self._records = dict(records)
        self.reserved = reserved

    def identifiers(self) -> Iterator[str]:
        for uid in self._records:
            if uid != self.reserved:
                yield uid

    def read_metadata(self, uid: str) -> bytes:
        return self._record(uid)[0]

    def read_logo(self, uid: str) -> bytes:
        logo = self._record(uid)[1]
        if logo is None:
            raise SourceError(f'logo for {uid} not found')
        return logo

    def _record(self, uid: str) -> tuple[bytes, bytes | None]:
        try:
            return self._records[uid]
        except KeyError as exc:
            raise SourceError(f'token {uid} not found') from exc
