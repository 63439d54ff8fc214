import sys

from ddrscope.cli import main

sys.exit(main())
