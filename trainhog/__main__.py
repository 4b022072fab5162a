import sys

from trainhog.cli import main

sys.exit(main())
