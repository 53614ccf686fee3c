from __future__ import annotations

"""Template initializer.

CONTRACT
- Inputs: Project path
- Outputs (required):
  - Writes .preflight.yaml
  - Creates the project-local library directory for external checks
- Invariants:
  - Does not overwrite existing files (by default)
- Failure:
  - Raises OSError on permission issues
"""

from pathlib import Path

from .config import CONFIG_FILENAME, DEFAULT_PROJECT_LIB
from .util.paths import copy_template, ensure_dir


def write_templates(project: Path, force: bool = False) -> list[Path]:
    ensure_dir(project)
    ensure_dir(project / DEFAULT_PROJECT_LIB)

    written: list[Path] = []
    dest = project / CONFIG_FILENAME
    if copy_template("preflight.yaml", dest, overwrite=force):
        written.append(dest)
    return written
