#!/usr/bin/env python3
from __future__ import annotations

import sys

from apps.tokens.cli import build_main

if __name__ == '__main__':
    sys.exit(build_main())
