"""Allow ``python -m gopick``."""

from gopick.cli import main

main()
