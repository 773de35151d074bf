"""Pre-compiled regex patterns for the preset browser.

All patterns are compiled once at module import. Natural-order sorting runs
over every catalog and every preset name during library loading, so the
digit-run splitter is the hot one.

Usage:
    from utils.patterns import DIGIT_RUN

    chunks = DIGIT_RUN.split("Pad 10")   # ['Pad ', '10', '']
"""

import re

# Runs of decimal digits; used with split() so numbers compare numerically
DIGIT_RUN = re.compile(r'(\d+)')

# Preset files that can be played directly without a separate preview
WAV_EXTENSION = re.compile(r'\.wav$', re.IGNORECASE)
