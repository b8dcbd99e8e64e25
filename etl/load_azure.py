"""
etl/load_azure.py – Azure load layer.

Writes the CSV artifacts to ADLS Gen2 instead of local disk. Selected by
pipeline.py whenever ADLS_CONNECTION_STRING is set (i.e. inside the
Function App).

File structure in ADLS (container: fx-data)
--------------------------------------------
    cbr/
        currencies.csv         ← overwritten each run
        currency_rates.csv     ← overwritten each run

Every run re-derives the full 30-day window, so overwriting is enough;
there is no partitioning and no append.
"""

import logging
import os
import posixpath

from azure.storage.blob import BlobServiceClient

logger = logging.getLogger(__name__)

BLOB_PREFIX = "cbr"


def _get_client() -> BlobServiceClient:
    """Build a BlobServiceClient from the connection string in env vars."""
    conn_str = os.environ["ADLS_CONNECTION_STRING"]
    return BlobServiceClient.from_connection_string(conn_str)


def blob_path_for(path: str) -> str:
    """Local artifact path → blob name, e.g. /tmp/out/currencies.csv → cbr/currencies.csv"""
    return posixpath.join(BLOB_PREFIX, os.path.basename(path))


def write_artifact_azure(path: str, text: str) -> None:
    """Upload ``text`` as a UTF-8 CSV blob, replacing any previous version."""
    container = os.environ.get("ADLS_CONTAINER_NAME", "fx-data")
    client = _get_client()
    blob_path = blob_path_for(path)

    client.get_container_client(container).upload_blob(
        name=blob_path, data=text.encode("utf-8"), overwrite=True
    )
    logger.info("Uploaded %s/%s (%d lines)", container, blob_path, text.count("\n"))
