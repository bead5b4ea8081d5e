#!/usr/bin/env python3
"""
Recalculate running point totals
--------------------------------
Resets every account's total_points to the sum of points earned by its
evaluated predictions.

Usage: Run from project root directory
    python scripts/recalculate_points.py
"""
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlmodel import Session
from alphabet.database import engine, create_db_and_tables
from alphabet.logging_config import setup_logging
from alphabet.services.scoring import recalculate_user_totals


def main():
    setup_logging()
    create_db_and_tables()

    with Session(engine) as db:
        corrected = recalculate_user_totals(db)

    print(f"Corrected {corrected} account total(s).")


if __name__ == "__main__":
    main()
