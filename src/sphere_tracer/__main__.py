"""Allow ``python -m sphere_tracer``."""

import sys

from sphere_tracer.cli import main

sys.exit(main())
