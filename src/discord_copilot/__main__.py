import sys

from discord_copilot.cli import main

sys.exit(main())
