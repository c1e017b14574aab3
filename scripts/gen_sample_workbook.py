#!/usr/bin/env python3
"""Sample company-database generator for manual runs.

Generates an .xlsx company database laid out the way the reconciler expects it, with
the mess a hand-maintained sheet accumulates:
- Row 1: Header row ("No.", "Company Name", ... "Follow Ups Completed")
- Several contact rows per company, sharing the company id
- Companies entered without an id, "undefined" ids and gaps in the numbering
- The same company name typed under two different ids
- Blank spacer rows and a legend block at the bottom
- Deprecated statuses ("Completed", "Negotiating") for the migration command

The data tab title contains "AUTOMATION ONLY"; a second "Notes" tab is added so
marker-based sheet location has something to skip.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

HEADER = [
    "No.", "Company Name", "Discipline", "Target Sponsorship Tier", "Previous Response",
    "Contact Name", "Role", "Email", "Phone", "Landline", "LinkedIn", "", "Remark",
    "PIC", "Last Updated", "Status", "Follow Ups Completed",
]

COMPANY_WORDS = ["Acme", "Globex", "Initech", "Umbrella", "Hooli", "Stark", "Wayne", "Wonka", "Tyrell", "Soylent"]
SUFFIXES = ["Inc", "Sdn Bhd", "Corp", "Engineering", "Berhad", "Holdings"]
DISCIPLINES = ["Mechanical", "Electrical", "Civil", "Chemical", "Software"]
TIERS = ["Platinum", "Gold", "Silver", "Bronze", ""]
STATUSES = ["To Contact", "Contacted", "Interested", "Registered", "Rejected", "Completed", "Negotiating"]
PICS = ["Aina", "Ben", "Chong", "Devi", ""]
ROLES = ["HR Manager", "Talent Acquisition", "Director", "Engineer", "Intern Coordinator"]

LEGEND_ROWS = [
    ["Legend", ""],
    ["", "Cold call"],
    ["", "WhatsApp/LinkedIn"],
    ["", "Contacted for internship talk"],
    ["", "Unreachable"],
]


def _company_names(count: int) -> list[str]:
    names = []
    for i in range(count):
        word = COMPANY_WORDS[i % len(COMPANY_WORDS)]
        suffix = SUFFIXES[(i // len(COMPANY_WORDS)) % len(SUFFIXES)]
        names.append(f"{word} {suffix}" if i < len(COMPANY_WORDS) * len(SUFFIXES) else f"{word} {suffix} {i}")
    return names


def generate_company_rows(companies: int, seed: int = 42) -> list[list[Any]]:
    """Header row plus contact rows for ``companies`` companies, legend rows last.

    Args:
        companies: Number of distinct companies to generate
        seed: Random seed for reproducible data

    Returns:
        Rows as lists of cell values (17 columns, A..Q)
    """
    np.random.seed(seed)

    rows: list[list[Any]] = [list(HEADER)]
    names = _company_names(companies)
    # ids with gaps: skip roughly every seventh number
    numbers = [n for n in range(1, int(companies * 1.2) + 2) if n % 7 != 0][:companies]
    dates = pd.date_range("2024-01-01", "2024-12-31", periods=60)

    for index, (name, number) in enumerate(zip(names, numbers)):
        roll = np.random.random()
        if roll < 0.08:
            company_id = ""  # entered without an id
        elif roll < 0.10:
            company_id = "undefined"
        else:
            company_id = f"ME-{number:04d}"

        status = str(np.random.choice(STATUSES))
        pic = str(np.random.choice(PICS))
        contacts = int(np.random.randint(1, 4))
        for c in range(contacts):
            typed_name = name
            if c > 0 and np.random.random() < 0.3:
                typed_name = f"  {name.upper()} "  # same company typed differently
            rows.append([
                company_id,
                typed_name,
                str(np.random.choice(DISCIPLINES)),
                str(np.random.choice(TIERS)),
                "",
                f"Contact {index}-{c}",
                str(np.random.choice(ROLES)),
                f"contact{index}.{c}@example.com",
                f"+60 1{np.random.randint(0, 9)}-{np.random.randint(1000000, 9999999)}",
                "",
                "",
                "",
                "" if np.random.random() < 0.7 else "call back next week",
                pic,
                pd.Timestamp(np.random.choice(dates)).date().isoformat(),
                status,
                int(np.random.randint(0, 4)),
            ])

        if np.random.random() < 0.1:
            rows.append([])  # spacer

    # one company name registered twice under different ids
    if len(numbers) > 2 and names:
        rows.append([f"ME-{numbers[-1] + 1:04d}", names[0]] + [""] * (len(HEADER) - 2))

    rows.append([])
    rows.extend(LEGEND_ROWS)
    return rows


def create_workbook(output_path: Path, companies: int, seed: int = 42) -> int:
    """Write the sample workbook; returns the number of rows written to the data tab."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    rows = generate_company_rows(companies, seed)
    width = len(HEADER)
    padded = [r + [""] * (width - len(r)) for r in rows]

    with pd.ExcelWriter(output_path, engine="openpyxl") as writer:
        pd.DataFrame([["Free-form notes, not read by the reconciler"]]).to_excel(
            writer, sheet_name="Notes", header=False, index=False
        )
        pd.DataFrame(padded).to_excel(
            writer, sheet_name="Companies (AUTOMATION ONLY)", header=False, index=False
        )
    return len(padded)


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Generate a messy sample company-database workbook",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # 40 companies into data/companies.xlsx
  %(prog)s data/companies.xlsx

  # Larger, different seed
  %(prog)s data/big.xlsx --companies 2000 --seed 7
        """,
    )
    parser.add_argument("output", type=Path, help="Output Excel file path")
    parser.add_argument("--companies", type=int, default=40, help="Number of companies (default: 40)")
    parser.add_argument("--seed", type=int, default=42, help="Random seed for reproducible data (default: 42)")
    parser.add_argument("--dry-run", action="store_true", help="Show the plan without creating the file")
    args = parser.parse_args()

    if args.companies <= 0:
        print("Error: --companies must be positive", file=sys.stderr)
        return 1

    print("Sample workbook plan:")
    print(f"  Output file: {args.output}")
    print(f"  Companies: {args.companies:,}")
    print(f"  Random seed: {args.seed}")
    if args.dry_run:
        print("\n[DRY RUN] Would generate the workbook but not creating it.")
        return 0

    try:
        written = create_workbook(args.output, args.companies, args.seed)
    except OSError as e:
        print(f"\nError writing workbook: {e}", file=sys.stderr)
        return 1
    print(f"\nCreated {args.output} ({written} rows on 'Companies (AUTOMATION ONLY)')")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
