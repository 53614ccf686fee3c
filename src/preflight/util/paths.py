from __future__ import annotations

"""Path utilities.

CONTRACT
- Inputs: paths, template names
- Outputs:
  - ensure_dir() creates directory tree
  - expand_path() resolves `~` and makes relative paths absolute against a base
  - copy_template() writes a bundled resource to dest
- Invariants:
  - copy_template never overwrites existing files (unless `overwrite=True`)
- Failure:
  - copy_template raises FileNotFoundError if the resource is missing
"""

import importlib.resources
from pathlib import Path

TEMPLATES_PACKAGE = "preflight.templates"


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def expand_path(value: str | Path, base: Path | None = None) -> Path:
    p = Path(value).expanduser()
    if not p.is_absolute() and base is not None:
        p = base / p
    return p


def copy_template(template_name: str, dest: Path, overwrite: bool = False) -> bool:
    # Only write if missing (avoid clobber) unless forced.
    if dest.exists() and not overwrite:
        return False
    resource = importlib.resources.files(TEMPLATES_PACKAGE).joinpath(template_name)
    dest.write_text(resource.read_text(encoding="utf-8"), encoding="utf-8")
    return True
