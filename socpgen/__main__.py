import sys

from socpgen.cli import main

sys.exit(main())
