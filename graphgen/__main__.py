"""Allow ``python -m graphgen``."""

import sys

from .cli import main

sys.exit(main())
