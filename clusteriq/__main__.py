"""Entry point for `python -m clusteriq`.

Usage:
    python -m clusteriq
    uv run python -m clusteriq
"""

from __future__ import annotations

import asyncio

from clusteriq.app import main

asyncio.run(main())
