#!/usr/bin/env python3
"""Helper script to check and create the .env file for the slot finder."""

import os
import sys
from pathlib import Path

SECRET_VARS = ("SLOTFINDER_SUPABASE_KEY", "SLOTFINDER_GOOGLE_MAPS_API_KEY")

TEMPLATE = """# Supabase Configuration (working hours and confirmed appointments)
# Get these from: https://supabase.com/dashboard → Your Project → Settings → API
SLOTFINDER_SUPABASE_URL=https://your-project-id.supabase.co
SLOTFINDER_SUPABASE_KEY=your-service-role-key-here

# Routing (at least one of these is required)
SLOTFINDER_GOOGLE_MAPS_API_KEY=
SLOTFINDER_OSRM_BASE_URL=http://localhost:5000
# Provider order, comma-separated or JSON array: google, osrm, haversine
SLOTFINDER_ROUTING_PROVIDERS=google,osrm

# Technician home base
SLOTFINDER_HOME_BASE_LAT=55.7956
SLOTFINDER_HOME_BASE_LNG=-3.7939

# API Configuration
SLOTFINDER_API_PREFIX=/api
"""


def _mask(line: str) -> str:
    name, _, value = line.partition("=")
    value = value.strip()
    if name.strip() in SECRET_VARS and len(value) > 20:
        return f"{name}={value[:12]}...{value[-6:]}"
    return line


def main() -> int:
    project_root = Path(__file__).parent
    env_file = project_root / ".env"

    print("=" * 60)
    print("Slot Finder Environment Checker")
    print("=" * 60)
    print()

    if not env_file.exists():
        env_file.write_text(TEMPLATE, encoding="utf-8")
        print(f"✅ Created template .env file at: {env_file}")
        print("⚠️  Please edit .env and add your Supabase and routing credentials!")
        return 1

    print(f"✅ Found .env file at: {env_file}")
    print("-" * 60)
    for line in env_file.read_text(encoding="utf-8").splitlines():
        print(_mask(line))
    print("-" * 60)
    print()

    print("Testing config loading...")
    sys.path.insert(0, str(project_root / "src"))
    try:
        from slotfinder.config import settings
    except Exception as e:
        print(f"❌ Error loading config: {e}")
        return 1

    problems = []
    if not (settings.supabase_url and settings.supabase_key):
        problems.append("Supabase URL/key missing (SLOTFINDER_SUPABASE_URL, SLOTFINDER_SUPABASE_KEY)")
    routable = [
        name
        for name in settings.routing_providers
        if name == "haversine"
        or (name == "google" and settings.google_maps_api_key)
        or (name == "osrm" and settings.osrm_base_url)
    ]
    if not routable:
        problems.append("No routing provider configured (SLOTFINDER_GOOGLE_MAPS_API_KEY or SLOTFINDER_OSRM_BASE_URL)")

    print(f"   Routing providers in use: {', '.join(routable) or 'none'}")
    print(f"   Home base: {settings.home_base_lat}, {settings.home_base_lng}")
    print(f"   Env overrides present: {sorted(k for k in os.environ if k.startswith('SLOTFINDER_'))}")
    print()

    if problems:
        print("=" * 60)
        print("❌ ERROR: configuration incomplete")
        for problem in problems:
            print(f"   - {problem}")
        print("=" * 60)
        return 1

    print("=" * 60)
    print("✅ SUCCESS: Slot finder is configured!")
    print("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(main())
