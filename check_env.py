#!/usr/bin/env python3
"""Helper script to check and create the .env file for route sequencer settings."""

from pathlib import Path
import os
import sys

TEMPLATE = """# API Configuration
FIELDROUTE_API_PREFIX=/api
# FIELDROUTE_FRONTEND_ALLOWED_ORIGINS - Leave commented to use defaults
# JSON array: ["http://localhost:5173","http://127.0.0.1:5173"]

# Data Paths
FIELDROUTE_DATA_ROOT=./data
FIELDROUTE_STORE_FILE=route_store.json
FIELDROUTE_STOPS_FILE=./data/stops.json

# Scheduling
FIELDROUTE_ROUTE_START_TIME=09:00
FIELDROUTE_STOP_DURATION_MINUTES=60
FIELDROUTE_CURRENT_STOP_GRACE_MINUTES=30
FIELDROUTE_CUSTOMER_TIME_SEED=first
FIELDROUTE_MIN_STOPS_TO_SAVE=2
FIELDROUTE_DEMO_STOPS_WHEN_EMPTY=true
"""


def main():
    project_root = Path(__file__).parent
    env_file = project_root / ".env"

    print("=" * 60)
    print("Field Route Sequencer Environment Checker")
    print("=" * 60)
    print()

    if env_file.exists():
        print(f"Found .env file at: {env_file}")
    else:
        print(f".env file NOT found at: {env_file}")
        print("Creating template .env file...")
        with open(env_file, "w", encoding="utf-8") as f:
            f.write(TEMPLATE)
        print(f"Created .env file at: {env_file}")
    print()

    overridden = sorted(name for name in os.environ if name.startswith("FIELDROUTE_"))
    if overridden:
        print("Environment overrides:")
        for name in overridden:
            print(f"  {name}={os.environ[name]}")
        print()

    print("Testing config loading...")
    print()
    try:
        sys.path.insert(0, str(project_root / "src"))
        from fieldroute.config import Settings

        loaded = Settings()
    except Exception as e:
        print(f"Error loading config: {e}")
        print()
        print("Make sure you're running this from the project root directory")
        sys.exit(1)

    print(f"  data_root:              {loaded.data_root}")
    print(f"  store file:             {loaded.store_path}")
    print(f"  stops file:             {loaded.stops_file} ({'found' if loaded.stops_file.exists() else 'missing'})")
    print(f"  route start:            {loaded.route_start_time}")
    print(f"  minutes per stop:       {loaded.stop_duration_minutes}")
    print(f"  current-stop grace:     {loaded.current_stop_grace_minutes} min")
    print(f"  customer time seeding:  {loaded.customer_time_seed}")
    print()
    print("=" * 60)
    print("SUCCESS: configuration is valid")
    print("=" * 60)


if __name__ == "__main__":
    main()
