"""
implnew/__main__.py
===================

Entry point for ``python -m implnew``; see :mod:`implnew.main`.
"""

from implnew.main import main

if __name__ == "__main__":
    raise SystemExit(main())
