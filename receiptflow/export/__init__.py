"""Export destinations for mapped receipt rows."""
from receiptflow.export.sinks import ensure_output_dir, write_csv, write_excel

__all__ = ["ensure_output_dir", "write_csv", "write_excel"]
