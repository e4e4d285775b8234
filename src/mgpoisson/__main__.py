from __future__ import annotations

import sys

from mgpoisson.algorithm.cycle import LaplaceProblem


def main() -> int:
    LaplaceProblem().run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
