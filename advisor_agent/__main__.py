import sys

from advisor_agent.cli import main

sys.exit(main())
