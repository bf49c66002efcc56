import sys

from sqs_utility.cli.main import main

sys.exit(main())
