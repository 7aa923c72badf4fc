import sys

from vapeur.cli import main

sys.exit(main())
