#!/usr/bin/env python3
"""Run the Lifeline Quiz from a source checkout."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent / "src"))

from lifeline_quiz.app import main


if __name__ == "__main__":
    sys.exit(main())
