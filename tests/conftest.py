import sys
from pathlib import Path

# Put src/ (the wwsclient package) and this directory (mock_wws_server) on the path
ROOT = Path(__file__).resolve().parents[1]
for path in (ROOT / 'src', Path(__file__).resolve().parent):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))
