#!/usr/bin/env python3
"""
Convenience entry point to run the generator CLI.

Usage examples:
  python cli.py generate --capability-statement capability.json --output build/
  python cli.py generate --ehr-name epic --included-profile http://example.org/StructureDefinition/p1
  python cli.py profiles https://fhir.example.org/r4/metadata
"""

from ehr_servicegen.cli.app import main


if __name__ == "__main__":
    main()
