"""Write the news chat API's OpenAPI schema to disk.

Usage:
    python -m scripts.generate_openapi --output openapi.json
"""

import argparse
import json
from pathlib import Path

from app.main import app


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate openapi.json")
    parser.add_argument("--output", type=Path, default=Path("openapi.json"))
    args = parser.parse_args()

    schema = app.openapi()
    args.output.write_text(json.dumps(schema, indent=2, ensure_ascii=False) + "\n")
    print(f"Generated {args.output} ({len(schema['paths'])} endpoints)")


if __name__ == "__main__":
    main()
