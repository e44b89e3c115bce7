#!/usr/bin/env python3
"""
Load sample workflow templates from a YAML file into the workflow store.

Usage:
    python -m scripts.seed_workflows [seed.yaml] [--user <user_id>]

The YAML file holds a ``workflows`` list; each entry uses the same fields as
``POST /api/v1/workflows``.
"""
import sys
from pathlib import Path

import yaml

from app.core.config import settings
from app.models.workflow import WorkflowCreate
from app.services.workflow_service import WorkflowService, workflow_service

DEFAULT_SEED_FILE = Path(__file__).parent / "sample_workflows.yaml"
DEFAULT_SEED_USER = "seed-user"


def load_seed_file(seed_file: Path) -> list[WorkflowCreate]:
    """Parse the seed YAML into workflow create requests."""
    with open(seed_file, "r") as f:
        data = yaml.safe_load(f) or {}

    return [WorkflowCreate(**entry) for entry in data.get("workflows", [])]


def existing_titles(service: WorkflowService, user_id: str) -> set[str]:
    titles = set()
    cursor = None
    while True:
        page = service.list_mine(user_id, limit=settings.max_page_size, cursor=cursor)
        titles.update(item.title for item in page.items)
        if not page.next_cursor:
            return titles
        cursor = page.next_cursor


def seed(seed_file: Path, user_id: str, service: WorkflowService = workflow_service) -> int:
    """Create every workflow in ``seed_file`` whose title the user has not used yet."""
    titles = existing_titles(service, user_id)

    created = 0
    for workflow_create in load_seed_file(seed_file):
        if workflow_create.title in titles:
            print(f"⏭️  Skipping existing workflow: {workflow_create.title}")
            continue
        service.create_workflow(workflow_create, user_id)
        titles.add(workflow_create.title)
        created += 1

    return created


def main():
    args = sys.argv[1:]
    user_id = DEFAULT_SEED_USER
    if "--user" in args:
        idx = args.index("--user")
        if idx + 1 >= len(args):
            print(__doc__)
            sys.exit(2)
        user_id = args[idx + 1]
        del args[idx:idx + 2]

    seed_file = Path(args[0]) if args else DEFAULT_SEED_FILE

    print(f"🌱 Seeding workflows from {seed_file} as {user_id}")
    created = seed(seed_file, user_id)
    print(f"✅ Created {created} workflows")


if __name__ == "__main__":
    main()
