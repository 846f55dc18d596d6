"""
HTTP-triggered API Functions

Each returns a plain-text body. Failures are answered with a 500 and the
configured failure message.
"""

import html

from eventfn import InvocationContext, NameInput, SilentFailure, http_trigger


@http_trigger(methods=["GET"])
def hello_get(request: NameInput) -> str:
    """Access at: /hello_get"""
    return "Hello Planet Earth!"


@http_trigger(methods=["GET", "POST"])
def hello_http(request: NameInput, context: InvocationContext) -> str:
    """
    Greet the caller by name.

    Access at: /hello_http?name=Alice, or POST {"name": "Alice"}.
    The name is untrusted input and is HTML-escaped before it is echoed.
    """
    return f"Hello {html.escape(request.name)}!"


@http_trigger(methods=["GET", "POST"])
def hello_error_4(request: NameInput, context: InvocationContext) -> SilentFailure:
    # Answers 500 without raising; not sent to error reporting
    return SilentFailure("I failed you")
