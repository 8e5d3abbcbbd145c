import sys

from fsm_designer.cli import main

sys.exit(main())
