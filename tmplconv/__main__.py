import sys

from tmplconv.cli import main

sys.exit(main())
