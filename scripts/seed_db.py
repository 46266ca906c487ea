from __future__ import annotations

import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from scripts.init_db import main

if __name__ == "__main__":
    # Same as `init_db.py --seed`; kept for existing habits.
    sys.exit(main(["--seed"]))
