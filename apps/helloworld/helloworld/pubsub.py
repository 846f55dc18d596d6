"""
Pub/Sub-triggered Functions
"""

from eventfn import InvocationContext, MessageInput, message_trigger


@message_trigger
def hello_pubsub(message: MessageInput, context: InvocationContext) -> None:
    """
    Log a greeting for the name carried in the message body.

    The body arrives base64-encoded and is decoded before this runs; an
    empty message greets "World".
    """
    context.logger.info(f"Hello, {message.name}!")
