import sys

from hourlycast.cli import main

sys.exit(main())
