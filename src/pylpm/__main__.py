import sys

from pylpm.cli import main

sys.exit(main())
