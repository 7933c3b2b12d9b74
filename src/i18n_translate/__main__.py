import sys

from i18n_translate.cli import main

sys.exit(main())
