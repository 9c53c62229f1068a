import sys

from meetscribe.bot.cli import main

sys.exit(main())
