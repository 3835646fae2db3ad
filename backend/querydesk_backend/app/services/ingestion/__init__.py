"""Upload decoding."""

from .csv_decoder import DecodedCsv, decode_csv

__all__ = ["DecodedCsv", "decode_csv"]
