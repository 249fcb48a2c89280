"""Terminal interface helpers: validation probes, prompts and Rich output."""
