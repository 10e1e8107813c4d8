import sys
import os

# Put the project root (top-level modules like 'pipeline', 'ingest', 'scoring') and this directory ('fakes') on sys.path.
TESTS = os.path.abspath(os.path.dirname(__file__))
ROOT = os.path.dirname(TESTS)
for path in (ROOT, TESTS):
    if path not in sys.path:
        sys.path.insert(0, path)
