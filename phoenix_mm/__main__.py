import sys

from phoenix_mm.cli import main

sys.exit(main())
