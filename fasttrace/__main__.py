"""
fasttrace - A faster but not necessarily better trace util

Entry point for running as a module:
    python -m fasttrace <address>
"""

from .cli import main

if __name__ == '__main__':
    main()
