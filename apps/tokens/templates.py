from __future__ import annotations

import json
import logging
import shutil
from pathlib import Path
from typing import Any

from .models import Token, TokenAddress, dump_record
from .sources import LOGO_FILENAME, META_FILENAME, TEMPLATE_TOKEN

LOGGER = logging.getLogger('token_listing.templates')


class TemplateError(Exception):
    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


def _skeleton() -> dict[str, Any]:
    payload = dump_record(Token())
    payload['addresses'] = [dump_record(TokenAddress(token_type='ERC20'))]
    return payload


def _load_template(template_dir: Path) -> dict[str, Any]:
    meta_path = template_dir / META_FILENAME
    if not meta_path.exists():
        return _skeleton()
    try:
        payload = json.loads(meta_path.read_text(encoding='utf-8'))
    except (OSError, json.JSONDecodeError) as exc:
        raise TemplateError(f'cannot read template {meta_path}: {exc}') from exc
    if not isinstance(payload, dict):
        raise TemplateError(f'template {meta_path} must hold a JSON object')
    return payload


def create_token_template(tokens_dir: Path, uid: str, template: str = TEMPLATE_TOKEN) -> Path:
    uid = uid.strip()
    if not uid or uid.startswith('.') or any(sep in uid for sep in ('/', '\\')):
        raise TemplateError(f'invalid token uid {uid!r}')
    if uid == template:
        raise TemplateError(f'{uid} is reserved for the token template')

    target = tokens_dir / uid
    if target.exists():
        raise TemplateError(f'token directory {target} already exists')

    template_dir = tokens_dir / template
    payload = _load_template(template_dir)
    payload['uuid'] = uid
    addresses = payload.get('addresses')
    if isinstance(addresses, list):
        for address in addresses:
            if isinstance(address, dict):
                address['token_uid'] = uid

    try:
        target.mkdir(parents=True)
        (target / META_FILENAME).write_text(json.dumps(payload, indent=2) + '\n', encoding='utf-8')
        template_logo = template_dir / LOGO_FILENAME
        if template_logo.is_file():
            shutil.copyfile(template_logo, target / LOGO_FILENAME)
    except OSError as exc:
        raise TemplateError(f'cannot create token directory {target}: {exc}') from exc

    LOGGER.info('created token template uid=%s path=%s', uid, target)
    return target
