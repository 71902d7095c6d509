from __future__ import annotations

import asyncio
import sys
from typing import Any

uvloop: Any | None
if sys.platform.startswith("win"):
    uvloop = None
else:
    import uvloop as _uvloop

    uvloop = _uvloop


def install_uvloop_policy() -> bool:
    """Install uvloop as the default event loop policy when the platform has it."""
    if uvloop is None:
        return False
    asyncio.set_event_loop_policy(uvloop.EventLoopPolicy())
    return True
