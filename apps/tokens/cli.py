from __future__ import annotations

import argparse
import logging

from .artifacts import ArtifactEmitter, EmitError
from .config import Settings, get_settings
from .network_catalog import CatalogError, NetworkCatalog
from .sources import DirectorySource
from .templates import TemplateError, create_token_template
from .token_registry import RegistryError, TokenRegistry, load_registry
from .validator import FULL_CATALOG, ForkScopeError, Report, RestrictedToUids, Validator, uids_from_changed_files

LOGGER = logging.getLogger('token_listing.cli')


def _configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level,
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s'
    )


def _load(settings: Settings) -> TokenRegistry:
    catalog = NetworkCatalog.load(settings.catalog_path)
    source = DirectorySource(settings.tokens_path, reserved=settings.template_token)
    registry = load_registry(
        catalog,
        source,
        legacy_network_id=settings.legacy_network_id,
        price_index_keyed_by_network=settings.price_index_keyed_by_network
    )
    print(f'walked through {len(registry)} tokens')
    return registry


def _print_report(report: Report, heading: str) -> None:
    for uid, errors in report.items():
        print(f'token {uid} has {heading}:')
        for error in errors:
            print(f'  - {error}')


def build_main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description='Load every token and rebuild the asset tree')
    parser.parse_args(argv)

    settings = get_settings()
    _configure_logging(settings)
    try:
        registry = _load(settings)
        ArtifactEmitter(registry, settings.dist_path).emit()
    except (CatalogError, RegistryError, EmitError, OSError) as exc:
        LOGGER.error('build failed: %s', exc)
        print(f'build failed: {exc}')
        return 1

    print('build assets completed')
    return 0


def validate_main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description='Load every token and report validation errors')
    parser.add_argument('--fork', action='store_true', help='Whether the PR is from a fork')
    parser.add_argument('--script', action='store_true', help='Whether the PR has a script tag')
    parser.add_argument('--files', default='', help='Comma-separated list of changed files')
    args = parser.parse_args(argv)

    settings = get_settings()
    _configure_logging(settings)
    try:
        registry = _load(settings)
    except (CatalogError, RegistryError, OSError) as exc:
        LOGGER.error('validation aborted: %s', exc)
        print(f'failed to walk through tokens: {exc}')
        return 1

    validator = Validator(registry)

    if args.fork and not args.script:
        print('Fork PR detected - applying fork-specific validation rules')
        try:
            uids = uids_from_changed_files(args.files.split(','), tokens_dir=settings.tokens_dir)
        except ForkScopeError as exc:
            print(f'Fork PRs can only modify files in /{settings.tokens_dir}/* directory. {exc.detail}')
            return 1

        fork_report = validator.validate(RestrictedToUids(uids=uids))
        if fork_report:
            print('Fork-specific validation failed:')
            _print_report(fork_report, 'fork validation errors')
            return 1
        print('Fork-specific validation passed')

    report = validator.validate(FULL_CATALOG)
    if report:
        _print_report(report, 'errors')
        return 1

    print('all tokens are valid')
    print('validation completed')
    return 0


def new_token_main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description='Scaffold a token directory from the template token')
    parser.add_argument('uid', help='Directory name and uuid of the new token')
    args = parser.parse_args(argv)

    settings = get_settings()
    _configure_logging(settings)
    try:
        path = create_token_template(settings.tokens_path, args.uid, template=settings.template_token)
    except TemplateError as exc:
        print(f'cannot create token: {exc.detail}')
        return 1

    print(f'created {path}')
    return 0
