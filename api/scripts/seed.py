import argparse
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from roomie.main import init_schema
from roomie.repo import SqlMatchStore
from roomie.services.seeding import seed_profiles


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed dummy Roomie Match profiles")
    parser.add_argument("--n-users", type=int, default=50)
    parser.add_argument("--seed", type=int, default=42)
    args = parser.parse_args()

    init_schema()
    summary = seed_profiles(SqlMatchStore(), n_users=args.n_users, seed=args.seed)

    print("Seed completed")
    for k, v in summary.items():
        print(f"- {k}: {v}")


if __name__ == "__main__":
    main()
