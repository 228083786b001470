import sys

from native_image.cli import main

sys.exit(main())
