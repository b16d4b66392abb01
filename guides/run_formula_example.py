"""Example showing how to drive a formula from Python instead of the CLI."""

import asyncio
import logging
import sys

from gtmigrate import MigrationOrchestrator, load_formula


async def main():
    formula_path = sys.argv[1]
    town_root = sys.argv[2]

    formula = load_formula(formula_path)
    orchestrator = MigrationOrchestrator(town_root)

    for step in await orchestrator.plan(formula):
        print(f"{step.id}: {step.status.value} ({len(step.commands)} commands)")

    report = await orchestrator.run(formula)
    for anomaly in report.anomalies:
        print(f"warning: {anomaly.message}")
    report.raise_for_failure()
    print("All steps completed")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
