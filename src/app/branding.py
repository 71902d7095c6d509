from __future__ import annotations

import re

APP_NAME = "Piano Morph"
APP_SLUG = re.sub(r"[^a-z0-9]+", "-", APP_NAME.lower()).strip("-")
APP_ENV_PREFIX = APP_SLUG.replace("-", "_").upper()
