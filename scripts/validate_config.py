#!/usr/bin/env python3
"""Configuration validation script."""

import sys
from pathlib import Path

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from repo_lifecycle.config.loader import ConfigLoader
from repo_lifecycle.config.validation import ConfigValidator


def main():
    """Main validation function."""
    config_dir = Path(sys.argv[1]) if len(sys.argv) > 1 else None
    loader = ConfigLoader.create(config_dir)

    print(f"🔍 Validating engine configuration in {loader.config_dir}...")

    try:
        config = loader.merge_config()
    except Exception as e:
        print(f"❌ Could not load configuration: {e}")
        sys.exit(1)

    errors = ConfigValidator.validate_engine_params(config)

    if errors:
        print(f"❌ Found {len(errors)} validation errors:")
        for error in errors:
            print(f"  • {error.field}: {error.message} (value: {error.value})")
        sys.exit(1)

    print("✅ Engine configuration is valid")
    for section in ("cache", "limits", "lock", "retry", "storage"):
        print(f"  {section}: {config.get(section)}")
    sys.exit(0)


if __name__ == "__main__":
    main()
