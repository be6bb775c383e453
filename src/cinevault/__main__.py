"""Run the CineVault CLI: python -m cinevault."""
import sys

from cinevault.cli import main

sys.exit(main())
