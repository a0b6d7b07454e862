"""
Format converters between the document model and external files.

- csv_codec: flat CSV import/export and authoring template
- xml_codec: Moodle XML export and shape validation
"""

from .csv_codec import (
    CSV_HEADERS,
    CsvTemplate,
    ImportResult,
    csv_template,
    from_csv,
    quiz_to_csv,
    to_csv,
)
from .xml_codec import XmlValidationResult, quiz_export_filename, to_xml, validate_xml

__all__ = [
    "CSV_HEADERS",
    "CsvTemplate",
    "ImportResult",
    "XmlValidationResult",
    "csv_template",
    "from_csv",
    "quiz_export_filename",
    "quiz_to_csv",
    "to_csv",
    "to_xml",
    "validate_xml",
]
