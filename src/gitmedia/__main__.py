import sys

from gitmedia.cli import main

sys.exit(main())
