"""Allow ``python -m docima``."""

import sys

from docima.cli import main

sys.exit(main())
