#!/usr/bin/env python3
"""
Print the positioned graph of a workflow JSON file.

Usage:
    python -m scripts.preview_graph <workflow.json> [--static]

Example:
    python -m scripts.preview_graph exports/newsletter.json --static
"""
import sys
import json
from pathlib import Path

from app.services.graph_layout import layout_workflow


def main():
    args = [arg for arg in sys.argv[1:] if not arg.startswith("--")]
    if len(args) != 1:
        print(__doc__)
        sys.exit(2)

    interactive = "--static" not in sys.argv[1:]

    try:
        with open(Path(args[0]), "r") as f:
            workflow_data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        print(json.dumps({"success": False, "error": f"Failed to read workflow: {str(e)}"}))
        sys.exit(1)

    graph = layout_workflow(workflow_data, interactive)
    print(json.dumps({"success": True, **graph.model_dump(mode="json")}, indent=2))


if __name__ == "__main__":
    main()
