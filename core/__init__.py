"""Settings, errors, logging and the task filter engine."""
