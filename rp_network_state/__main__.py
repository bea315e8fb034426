"""Allow running the package as a module: python -m rp_network_state"""

import sys

from rp_network_state.cli import main

if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
