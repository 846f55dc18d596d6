"""
Hello World Functions

Sample handlers for every trigger kind eventfn dispatches: HTTP
responders, a Pub/Sub message handler, storage event handlers, and
handlers that fail on purpose to show which failures reach error
reporting.

Importing this package registers all of them in the process dispatch table.
"""

from eventfn import get_default_table

from .api import hello_error_4, hello_get, hello_http
from .background import hello_background, hello_error, hello_error_2, hello_error_3
from .pubsub import hello_pubsub
from .storage import hello_gcs, hello_gcs_generic

table = get_default_table()

__all__ = [
    "table",
    "hello_get",
    "hello_http",
    "hello_error_4",
    "hello_background",
    "hello_error",
    "hello_error_2",
    "hello_error_3",
    "hello_pubsub",
    "hello_gcs",
    "hello_gcs_generic",
]
