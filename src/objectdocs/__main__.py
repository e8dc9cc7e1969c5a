"""Allow running the CLI as `python -m objectdocs`."""

import sys

from objectdocs.cli import main

sys.exit(main())
