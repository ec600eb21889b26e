from __future__ import annotations

import io
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import PurePosixPath

from PIL import Image, UnidentifiedImageError
from pydantic import AnyUrl, TypeAdapter, ValidationError

from .models import GAS_SPONSORED_STRATEGIES, MAX_DECIMALS, PRICE_ID_UNSET, TOKEN_TYPES, Token, TokenAddress
from .token_registry import TokenRegistry

LOGGER = logging.getLogger('token_listing.validator')

LOGO_SIZE = (64, 64)
LOGO_MIN_BYTES = 200
LOGO_MAX_BYTES = 1024 * 1024

CONTRIBUTED_MIN_ORDER_INDEX = 100_000

_URL_ADAPTER: TypeAdapter[AnyUrl] = TypeAdapter(AnyUrl)

Report = dict[str, list[str]]


class ForkScopeError(Exception):
    def __init__(self, paths: list[str]) -> None:
        detail = 'changes outside the token directory: ' + ', '.join(paths)
        super().__init__(detail)
        self.detail = detail
        self.paths = paths


class ValidationProfile(ABC):
    name = 'base'

    @abstractmethod
    def select(self, registry: TokenRegistry) -> list[tuple[str, Token | None]]:
        ...

    def extra_rules(self, uid: str, token: Token) -> list[str]:
        return []


class FullCatalog(ValidationProfile):
    name = 'full'

    def select(self, registry: TokenRegistry) -> list[tuple[str, Token | None]]:
        return [(uid, registry.tokens[uid]) for uid in sorted(registry.tokens)]


@dataclass(frozen=True)
class RestrictedToUids(ValidationProfile):
    """Contribution profile: only the touched tokens, plus rules that keep
    externally contributed listings away from curated placement."""

    uids: frozenset[str]
    name = 'restricted'

    def select(self, registry: TokenRegistry) -> list[tuple[str, Token | None]]:
        return [(uid, registry.get(uid)) for uid in sorted(self.uids)]

    def extra_rules(self, uid: str, token: Token) -> list[str]:
        errors: list[str] = []
        if token.is_featured:
            errors.append('contributed tokens cannot be featured')
        if token.order_index < CONTRIBUTED_MIN_ORDER_INDEX:
            errors.append(f'order index must be at least {CONTRIBUTED_MIN_ORDER_INDEX}, got {token.order_index}')
        for index, address in enumerate(token.addresses):
            if address.token_uid != uid:
                errors.append(f"address[{index}]: token UID '{address.token_uid}' must be '{uid}'")
            if address.name != token.name:
                errors.append(f"address[{index}]: name '{address.name}' must match token name '{token.name}'")
            if address.symbol != token.symbol:
                errors.append(f"address[{index}]: symbol '{address.symbol}' must match token symbol '{token.symbol}'")
        return errors


FULL_CATALOG = FullCatalog()


def _blank(value: str) -> bool:
    return not value.strip()


def _url_error(value: str) -> str | None:
    try:
        _URL_ADAPTER.validate_python(value)
    except ValidationError as exc:
        return exc.errors()[0]['msg']
    return None


def _check_optional_url(errors: list[str], value: str, label: str, prefix: str = '') -> None:
    if _blank(value):
        return
    problem = _url_error(value)
    if problem is not None:
        errors.append(f'{prefix}invalid {label} URL format: {problem}')


def check_logo(logo: bytes | None) -> str | None:
    if logo is None:
        return 'logo file does not exist'
    if len(logo) > LOGO_MAX_BYTES:
        return f'logo file is too large: {len(logo)} bytes (max: {LOGO_MAX_BYTES} bytes)'
    if len(logo) < LOGO_MIN_BYTES:
        return f'logo file is too small: {len(logo)} bytes (min: {LOGO_MIN_BYTES} bytes)'
    try:
        with Image.open(io.BytesIO(logo)) as image:
            image_format = image.format
            width, height = image.size
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as exc:
        return f'cannot decode PNG config: {type(exc).__name__}'
    if image_format != 'PNG':
        return f'logo must be a PNG image, got: {image_format}'
    if (width, height) != LOGO_SIZE:
        return f'logo must be exactly 64x64 pixels, got: {width}x{height}'
    return None


def uids_from_changed_files(paths: Iterable[str], tokens_dir: str = 'tokens') -> frozenset[str]:
    prefix = PurePosixPath(tokens_dir).parts
    depth = len(prefix)
    uids: set[str] = set()
    outside: list[str] = []
    for raw in paths:
        path = raw.strip()
        if not path:
            continue
        parts = PurePosixPath(path).parts
        if len(parts) <= depth or parts[:depth] != prefix or '..' in parts:
            outside.append(path)
            continue
        # tokens/<uid>/<file>; loose files directly under tokens/ touch no token
        if len(parts) > depth + 1:
            uids.add(parts[depth])
    if outside:
        raise ForkScopeError(outside)
    return frozenset(uids)


class Validator:
    def __init__(self, registry: TokenRegistry) -> None:
        self.registry = registry

    def validate(self, profile: ValidationProfile = FULL_CATALOG) -> Report:
        report: Report = {}
        checked = 0
        for uid, token in profile.select(self.registry):
            checked += 1
            if token is None:
                report[uid] = [f'token {uid} is not in the registry']
                continue
            errors = self.validate_token(uid, token)
            errors.extend(profile.extra_rules(uid, token))
            if errors:
                report[uid] = errors

        LOGGER.info(
            'validation profile=%s tokens=%d invalid=%d',
            profile.name,
            checked,
            len(report)
        )
        return report

    def validate_token(self, uid: str, token: Token) -> list[str]:
        errors: list[str] = []

        if _blank(token.name):
            errors.append('token name is required')
        if _blank(token.symbol):
            errors.append('token symbol is required')
        if _blank(token.description):
            errors.append('token description is required')

        if _blank(token.logo_png_url):
            errors.append('logo PNG URL is required')
        else:
            _check_optional_url(errors, token.logo_png_url, 'logo PNG')

        logo_problem = check_logo(self.registry.logo(uid))
        if logo_problem is not None:
            errors.append(f'logo file validation failed: {logo_problem}')

        if token.coin_market_cap_id == PRICE_ID_UNSET and _blank(token.live_price_url):
            errors.append('either CoinMarketCap ID or LivePriceUrl must be provided')
        if token.coin_market_cap_id != PRICE_ID_UNSET and token.coin_market_cap_id <= 0:
            errors.append('CoinMarketCap ID must be positive')

        _check_optional_url(errors, token.live_price_url, 'LivePriceUrl')
        _check_optional_url(errors, token.website_url, 'website')
        _check_optional_url(errors, token.x_url, 'X (Twitter)')
        _check_optional_url(errors, token.discord_url, 'Discord')
        _check_optional_url(errors, token.whitepaper_url, 'whitepaper')
        _check_optional_url(errors, token.logo_svg_url, 'logo SVG')

        if not token.addresses:
            errors.append('at least one token address is required')
        for index, address in enumerate(token.addresses):
            errors.extend(self.validate_address(address, index))

        if not _blank(token.wrapped_token_uuid) and token.wrapped_token_uuid not in self.registry:
            errors.append(f"wrapped token UUID '{token.wrapped_token_uuid}' does not exist")

        if token.is_scam:
            errors.append('scam tokens are not allowed')

        return errors

    def validate_address(self, address: TokenAddress, index: int) -> list[str]:
        errors: list[str] = []
        prefix = f'address[{index}]: '

        if _blank(address.address):
            errors.append(f'{prefix}address is required')
        if _blank(address.token_uid):
            errors.append(f'{prefix}token UID is required')

        entry = self.registry.catalog.find(address.network_id)
        if entry is None:
            errors.append(f'{prefix}network ID {address.network_id} does not exist')
        elif address.network_id != self.registry.legacy_network_id and not entry.matches(address.address):
            errors.append(f"{prefix}address '{address.address}' does not match network {entry.network.name} regex")

        if address.decimals > MAX_DECIMALS:
            errors.append(f'{prefix}decimals cannot exceed {MAX_DECIMALS}')
        if address.token_type not in TOKEN_TYPES:
            errors.append(
                f"{prefix}invalid token type '{address.token_type}', must be one of: {', '.join(TOKEN_TYPES)}"
            )
        if address.gas_sponsored_strategy not in GAS_SPONSORED_STRATEGIES:
            errors.append(f'{prefix}gas sponsored strategy must be between 0 and 5')
        if _blank(address.name):
            errors.append(f'{prefix}name is required')
        if _blank(address.symbol):
            errors.append(f'{prefix}symbol is required')

        _check_optional_url(errors, address.logo_png_url, 'logo PNG', prefix)
        _check_optional_url(errors, address.logo_svg_url, 'logo SVG', prefix)
        return errors
