from __future__ import annotations

import os

# Headless plotting for the viz tests; must be set before pyplot is imported
os.environ.setdefault("KERRLENS_MPL_BACKEND", "Agg")
