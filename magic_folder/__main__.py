import sys

from magic_folder.cli import main

sys.exit(main())
