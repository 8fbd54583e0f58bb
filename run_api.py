import os
import sys
from pathlib import Path

ROOT = Path(__file__).parent
SRC = ROOT / 'src'
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

# Allow overriding data dir via env
os.environ.setdefault('JOBOOK_DATA_DIR', str(ROOT / 'data' / 'jobook'))

from jobook.app import run  # noqa: E402

if __name__ == '__main__':
    run()
