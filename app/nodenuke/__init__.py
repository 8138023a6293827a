"""nodenuke - find and delete node_modules directories.

Scans a directory tree for ``node_modules`` folders, flags the ones that
live in application-managed locations, and removes the operator's
selection after explicit confirmation.
"""

__version__ = "0.1.0"
