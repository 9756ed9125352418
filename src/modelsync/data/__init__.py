"""Row value mapping and display for modelsync."""

from modelsync.data.values import coerce_values, create_instance, rows_by_key, set_values, to_string

__all__ = ["coerce_values", "create_instance", "rows_by_key", "set_values", "to_string"]
