"""Raw Google API call sites and the authenticated client factory.

Functions here take a service object, perform one remote call and raise
``GoogleAPIError`` on failure. They do no rate limiting or sanitization;
that is the adapters' job.
"""

from drive_gmail_manager.api.client import GoogleClient
from drive_gmail_manager.api.drive import format_file_size
from drive_gmail_manager.api.messages import format_date, parse_headers

__all__ = [
    "GoogleClient",
    "format_file_size",
    "format_date",
    "parse_headers",
]
