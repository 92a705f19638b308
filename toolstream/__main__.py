import sys

from toolstream.main import main

sys.exit(main())
