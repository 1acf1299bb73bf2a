"""Allow ``python -m workspace_organizer``."""

import sys

from workspace_organizer.main import main

sys.exit(main())
