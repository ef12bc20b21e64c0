"""Export codecs for canvastag."""

from .csv_codec import export_csv, export_json

__all__ = ["export_csv", "export_json"]
