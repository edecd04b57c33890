"""Allow ``python -m debugbridge``."""

import sys

from debugbridge.cli import main

sys.exit(main())
