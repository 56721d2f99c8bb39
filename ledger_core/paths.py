"""
ledger_core.paths
Output folder helpers.
"""
from __future__ import annotations
from pathlib import Path

OUTPUT_DIR = Path("output")
OUT_XLSX_DIR = OUTPUT_DIR / "xlsx"
OUT_PDF_DIR = OUTPUT_DIR / "pdf"
OUT_LOG_DIR = OUTPUT_DIR / "logs"

_KINDS = {
    "xlsx": OUT_XLSX_DIR,
    "pdf": OUT_PDF_DIR,
    "log": OUT_LOG_DIR,
}

def ensure_output_dirs(base_dir: Path = Path(".")) -> None:
    for d in _KINDS.values():
        (base_dir / d).mkdir(parents=True, exist_ok=True)

def out_path(kind: str, filename: str, base_dir: Path = Path(".")) -> Path:
    """
    Bare filenames land in output/<kind>/ under base_dir.
    A name with a directory part is used as given.
    """
    k = kind.lower()
    if k not in _KINDS:
        raise ValueError(f"Unknown output kind: {kind}")
    p = Path(filename).expanduser()
    if p.is_absolute() or len(p.parts) > 1:
        p.parent.mkdir(parents=True, exist_ok=True)
        return p
    ensure_output_dirs(base_dir)
    return base_dir / _KINDS[k] / p
