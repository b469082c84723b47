from .validators import validate_file, validate_number_list, parse_json_field
from .helpers import (
    calculate_compression_ratio,
    estimate_processing_time,
    generate_job_id,
    get_content_type,
    get_file_extension,
)

__all__ = [
    "validate_file",
    "validate_number_list",
    "parse_json_field",
    "calculate_compression_ratio",
    "estimate_processing_time",
    "generate_job_id",
    "get_content_type",
    "get_file_extension",
]
