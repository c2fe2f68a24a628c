import sys

from devops_review.cli import main

sys.exit(main())
