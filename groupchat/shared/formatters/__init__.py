"""Display formatters: sanitizing, tool summaries and Rich line rendering."""
