"""
Allow running the package directly: python -m hclbrot
"""
import sys

from .app import main

sys.exit(main())
