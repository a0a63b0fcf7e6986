"""HanziPlay Dashboard Backend.

Teacher and admin reporting over the HanziPlay character games: per-play
game records, student profiles and wrong-answer tallies folded into
progress statistics, trends and error-concentration reports.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
