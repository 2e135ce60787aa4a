from .commit import execute_commit
from .engine import ImportEngine, ImportMode, ImportSource
from .preview import build_preview
from .review import StagingEntry, apply_edits, save_reviewed, stage_candidates
from .summary import render_summary_line

__all__ = [
    "ImportEngine",
    "ImportMode",
    "ImportSource",
    "StagingEntry",
    "apply_edits",
    "build_preview",
    "execute_commit",
    "render_summary_line",
    "save_reviewed",
    "stage_candidates",
]
