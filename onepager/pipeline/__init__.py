"""Headless generation pipeline.

Subpackages
-----------
- `data_source`: CSV record loading and cleaning.
- `templates`: template directory scanning.
- `generation`: mapping resolution, job planning, execution and run control.
- `rendering`: the renderer contract and the PPTX implementation.

Nothing in this package writes to the terminal.
"""
