import sys

from roster_dashboard.app import main

sys.exit(main())
