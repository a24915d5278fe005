"""Package entry point for ``python -m fermento_editor``.

WHY: Users run the typography CLI as ``python -m fermento_editor book.html``
without installing the console script.

HOW: Delegates to the CLI's main() function.

RULES:
- This file must exist for ``python -m fermento_editor`` to work
- The HTTP server has its own entry point (fermento-api)
"""

from fermento_editor.cli import main

if __name__ == "__main__":
    main()
