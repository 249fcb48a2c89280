"""OnePager presentation generator package.

This package turns tabular client records (a current-year CSV, optionally
paired with a previous-year CSV) and a directory of per-language slide
templates into a batch of finished presentations, one per
(language, template, record) combination, with placeholder text replaced by
per-record values.

Package Structure
-----------------
- `pipeline/`:
    Headless layers: record loading, template directory scanning, mapping
    resolution, job planning, execution with ordered progress reporting and
    the PPTX renderer.
- `setup/`:
    Terminal-facing helpers: validation probes for input fields, Rich status
    tables and Questionary prompts.
- `cli.py`: command-line entrypoint (``onepager``).
- `config.py`: configuration constants, as UPPER_SNAKE_CASE.
- `settings.py`: environment/``.env`` backed runtime settings.
- `exceptions.py`: project-specific exception classes.

Examples
--------
>>> import onepager
>>> onepager.__version__
'0.3.0'
"""

__version__ = "0.3.0"
