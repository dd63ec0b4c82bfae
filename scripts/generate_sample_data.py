#!/usr/bin/env python3
"""Generate a sample savings club ledger.

This script builds a populated ledger (clients on the default plans, paid
days, deposits, withdrawals, transfers, loans and a tontine group) and
writes it as a tenant snapshot, ready to be opened with ``open_ledger``.
"""

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from savings_ledger.config import LedgerConfig
from savings_ledger.logging import setup_logging
from savings_ledger.scenarios import SavingsClubScenario
from savings_ledger.storage import JsonSnapshotStore

logger = logging.getLogger(__name__)


def print_summary(summary: dict, path: Path) -> None:
    """Print generation summary."""
    print("\n" + "=" * 60)
    print("Summary")
    print("=" * 60)
    for name, value in summary.items():
        if isinstance(value, dict):
            value = ", ".join(f"{k}={v}" for k, v in value.items())
        print(f"{name + ':':22}{value}")
    print(f"\nSnapshot saved to: {path}")
    print("=" * 60)


def main() -> None:
    """Main entry point."""
    config = LedgerConfig.from_env()

    parser = argparse.ArgumentParser(description="Generate a sample savings club ledger")
    parser.add_argument(
        "--clients",
        type=int,
        default=config.scenario.num_clients,
        help="Number of clients to generate (default: $LEDGER_NUM_CLIENTS or 20)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=config.seed if config.seed is not None else 42,
        help="Random seed for reproducibility (default: $SEED or 42)",
    )
    parser.add_argument(
        "--tenant",
        type=str,
        default=config.tenant_id,
        help="Tenant id of the snapshot (default: $LEDGER_TENANT or 'default')",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=config.storage.data_dir,
        help="Snapshot directory (default: $LEDGER_DATA_DIR or ./data)",
    )
    parser.add_argument(
        "--tontine-size",
        type=int,
        default=config.scenario.tontine_size,
        help="Seats in the generated tontine group (default: $LEDGER_TONTINE_SIZE or 4)",
    )
    parser.add_argument(
        "--locale",
        type=str,
        default=config.scenario.locale,
        help="Faker locale for names and contacts (default: $LEDGER_LOCALE or en_US)",
    )
    parser.add_argument(
        "--pretty",
        action="store_true",
        help="Pretty-print the JSON snapshot",
    )
    args = parser.parse_args()

    setup_logging(config.log_level, config.log_format)

    scenario_config = replace(
        config.scenario,
        num_clients=args.clients,
        tontine_size=args.tontine_size,
        locale=args.locale,
    )

    logger.info("=" * 60)
    logger.info("Generating Sample Savings Club")
    logger.info("=" * 60)
    logger.info("Clients: %d", args.clients)
    logger.info("Seed: %d", args.seed)
    logger.info("Tenant: %s", args.tenant)

    scenario = SavingsClubScenario(seed=args.seed, config=scenario_config)
    scenario.generate()

    snapshots = JsonSnapshotStore(args.output_dir, pretty=args.pretty or config.storage.pretty_json)
    scenario.export(snapshots, args.tenant)

    print_summary(scenario.get_summary(), snapshots.path_for(args.tenant))


if __name__ == "__main__":
    main()
