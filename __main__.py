#!/usr/bin/env python3
"""
taskdesk - run the CLI from a source checkout.

    python . create -p "rev ops" -a me -t "email leadership" -d "next friday"
    python . serve --port 8420
"""

import sys
from pathlib import Path

# Source checkout: make taskdesk/, api/ and cli/ importable without installing
sys.path.insert(0, str(Path(__file__).parent))

from cli.main import main  # noqa: E402

if __name__ == "__main__":
    sys.exit(main())
