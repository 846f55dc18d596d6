"""
Cloud Storage-triggered Functions
"""

from eventfn import InvocationContext, StorageObject, storage_trigger


@storage_trigger
def hello_gcs(file: StorageObject, context: InvocationContext) -> None:
    """Log whether the object was deleted, uploaded, or had its metadata updated."""
    if file.deleted:
        context.logger.info(f"File {file.name} deleted.")
    elif file.created:
        context.logger.info(f"File {file.name} uploaded.")
    else:
        context.logger.info(f"File {file.name} metadata updated.")


@storage_trigger
def hello_gcs_generic(file: StorageObject, context: InvocationContext) -> None:
    log = context.logger
    log.info(f"  Event: {file.event_id}")
    log.info(f"  Event Type: {file.event_type}")
    log.info(f"  Bucket: {file.bucket}")
    log.info(f"  File: {file.name}")
    log.info(f"  Metageneration: {file.metageneration}")
    log.info(f"  Created: {file.time_created}")
    log.info(f"  Updated: {file.updated}")
