import sys

from kofr.cli import main

sys.exit(main())
