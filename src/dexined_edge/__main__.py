import sys

from dexined_edge.main import main

sys.exit(main())
