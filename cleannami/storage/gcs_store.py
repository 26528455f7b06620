import json
import logging
from typing import List

from google.api_core.exceptions import GoogleAPIError, NotFound
from google.cloud import storage

from cleannami.exceptions import StoreError
from cleannami.storage.row_store import RowStore

logger = logging.getLogger(__name__)


class GCSRowStore(RowStore):
    """
    Keeps each table as one JSON document in a GCS bucket:
    gs://<bucket>/<prefix><table>.json
    """

    def __init__(self, bucket_name: str, prefix: str = "", client=None):
        self.bucket_name = bucket_name
        self.prefix = prefix
        self._client = client

    def _get_blob(self, table: str):
        """
        Returns the GCS blob object for the table's file.
        """
        if self._client is None:
            self._client = storage.Client()
        bucket = self._client.bucket(self.bucket_name)
        return bucket.blob(f"{self.prefix}{table}.json")

    def _load(self, table: str) -> List[dict]:
        """
        Loads a table from GCS.
        If the file does not exist yet, the table is empty.
        """
        blob = self._get_blob(table)

        try:
            data = blob.download_as_text()
        except NotFound:
            return []
        except GoogleAPIError as e:
            raise StoreError(f"Could not read {table} from {self.bucket_name}: {e}") from e

        return json.loads(data)

    def _save(self, table: str, rows: List[dict]) -> None:
        blob = self._get_blob(table)

        try:
            blob.upload_from_string(
                json.dumps(rows, indent=2),
                content_type="application/json"
            )
        except GoogleAPIError as e:
            raise StoreError(f"Could not write {table} to {self.bucket_name}: {e}") from e

        logger.debug(f"Saved {len(rows)} rows to {blob.name}")
