"""
Loading raw booking rows from the hotel_bookings.csv layout.

The loader only parses the file; typing and validation happen in the
schema normalizer. Missing cells come back as None.
"""

import logging
import os
from typing import Any, Dict, List

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

DEFAULT_DATA_PATH = "data/hotel_bookings.csv"


def records_from_frame(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """
    Convert a DataFrame into raw field mappings, one per row.

    NaN cells become None so that missing values are explicit.
    """
    cleaned = df.astype(object).where(pd.notna(df), None)
    records = cleaned.to_dict(orient='records')
    for record in records:
        for name, value in record.items():
            if isinstance(value, np.generic):
                record[name] = value.item()
    return records


def load_raw_records(file_path: str = DEFAULT_DATA_PATH) -> List[Dict[str, Any]]:
    """
    Load raw booking rows from a CSV file.

    Args:
        file_path: Path to a CSV with a header row naming the fields

    Returns:
        List of field name -> value mappings

    Raises:
        FileNotFoundError: If the CSV file doesn't exist
    """
    if not os.path.exists(file_path):
        # Try from project root
        project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
        candidate = os.path.join(project_root, file_path)
        if os.path.exists(candidate):
            file_path = candidate

    if not os.path.exists(file_path):
        raise FileNotFoundError(f"Data file not found: {file_path}")

    # Keep codes such as country "NA" (Namibia) as text
    df = pd.read_csv(file_path, keep_default_na=False, na_values=['', 'NULL', 'NaN', 'nan'])
    logger.info("Loaded %d rows with %d columns from %s", len(df), len(df.columns), file_path)
    return records_from_frame(df)
