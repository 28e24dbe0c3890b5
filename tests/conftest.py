"""Test configuration ensuring local package import when editable install not active.

If pytest runs outside the project's virtualenv, the project root is still
put on sys.path so `import jira_predictor` works.
"""

from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
