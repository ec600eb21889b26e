#!/usr/bin/env python3
from __future__ import annotations

import sys

from apps.tokens.cli import new_token_main

if __name__ == '__main__':
    sys.exit(new_token_main())
