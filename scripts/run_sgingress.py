# scripts/run_sgingress.py

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), ".."))
from sgingress.cli import main

if __name__ == "__main__":
    sys.exit(main())
