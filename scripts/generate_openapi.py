"""Write the service's OpenAPI schema to a JSON file."""

import argparse
import json
from pathlib import Path

from companion.main import app


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "-o", "--output", type=Path, default=Path("openapi.json"), help="target file"
    )
    args = parser.parse_args()

    schema = app.openapi()
    args.output.write_text(json.dumps(schema, indent=2, ensure_ascii=False) + "\n")
    for path, operations in sorted(schema["paths"].items()):
        print(f"{','.join(op.upper() for op in operations):<10} {path}")
    print(f"Generated {args.output} ({len(schema['paths'])} paths)")


if __name__ == "__main__":
    main()
