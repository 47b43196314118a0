"""
JSON Export Module

Exports price prediction reports to JSON files.
"""

import json
from datetime import datetime, timezone
from typing import Optional
from pathlib import Path

from .config import OUTPUT_DIR
from .models.prediction import PredictionReport


class PredictionExporter:
    """
    Exports price prediction reports to JSON.
    """

    def __init__(self, output_dir: Optional[str] = None):
        """
        Initialize the exporter.

        Args:
            output_dir: Directory for output files (default: config.OUTPUT_DIR)
        """
        self.output_dir = Path(output_dir or OUTPUT_DIR)

    def export_report(self, report: PredictionReport,
                      filename: Optional[str] = None) -> str:
        """
        Export a full risers/fallers report.

        Args:
            report: PredictionReport object
            filename: Output filename (auto-generated if not provided)

        Returns:
            Path to exported file
        """
        generated_at = datetime.now(timezone.utc)

        if filename is None:
            filename = f"price_predictions_{generated_at.strftime('%Y%m%d_%H%M')}.json"

        self.output_dir.mkdir(parents=True, exist_ok=True)
        filepath = self.output_dir / filename

        export_data = {
            'type': 'price_predictions',
            'generated_at': generated_at.isoformat(),
            'report': report.to_dict(),
        }

        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(export_data, f, indent=2)

        return str(filepath)
