"""Allow ``python -m lyapscope``."""

from lyapscope.cli import main

main()
