"""Laravel project conventions shared by the rule analyzers.

Files are classified by path, the way a Laravel application lays them out:
controllers under ``Http/Controllers``, models under ``Models/``, and
migrations, seeders and factories under ``database/``.
"""

from __future__ import annotations

SCAFFOLDING_DIRS = ("migrations", "seeders", "factories")

LIFECYCLE_METHODS = frozenset({"__construct", "__destruct"})


def is_scaffolding(path: str) -> bool:
    """Migrations, seeders and factories, where raw DB work is expected."""
    return any(part in path for part in SCAFFOLDING_DIRS)


def is_controller(path: str) -> bool:
    return "Controller.php" in path


def is_model(path: str, code: str) -> bool:
    return "Models/" in path or "models/" in path or "extends Model" in code


def is_lifecycle_method(name: str) -> bool:
    return name in LIFECYCLE_METHODS
