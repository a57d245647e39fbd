"""
Remote Collaborators

FLOW OVERVIEW
- RemoteFunctionClient.invoke(name, body)
  • POST {FUNCTIONS_URL}/{name} with the service key as Bearer token.
  • Non-2xx responses, transport errors, and `{"success": false}` payloads raise
    RemoteFunctionError carrying a short message.
- StorageClient.upload(bucket, filename, data, content_type)
  • Validates the image, stores it under `<uuid>.<ext>`, returns its public URL.
  • Failures raise StorageError.
- Both clients take settings from the Flask app config unless given explicitly,
  and record call latency/outcome in prometheus.
"""

import logging
import time
import uuid
from typing import Any, Dict, Optional

import requests
from flask import current_app

from .error_handlers import RemoteFunctionError, StorageError
from .prom_metrics import observe_remote_call
from .validators import validate_image_upload

UPLOAD_BUCKETS = ('opportunity-posters', 'content-media')


class RemoteFunctionClient:
    """Invokes named remote functions (web-scraper, create-xendit-payment)"""

    def __init__(self, base_url: Optional[str] = None, service_key: Optional[str] = None,
                 timeout: Optional[float] = None, http=None):
        config = current_app.config
        self.base_url = (base_url or config.get('FUNCTIONS_URL', '')).rstrip('/')
        self.service_key = service_key if service_key is not None else config.get('BACKEND_SERVICE_KEY', '')
        self.timeout = timeout or config.get('REMOTE_TIMEOUT_SECONDS', 30)
        self.http = http or requests
        self.logger = logging.getLogger(__name__)

    def _headers(self) -> Dict[str, str]:
        headers = {'Content-Type': 'application/json'}
        if self.service_key:
            headers['Authorization'] = f'Bearer {self.service_key}'
        return headers

    def invoke(self, name: str, body: Dict[str, Any]) -> Dict[str, Any]:
        """
        Invoke one remote function.

        Args:
            name: Function name, appended to FUNCTIONS_URL
            body: JSON body

        Returns:
            Decoded JSON payload
        """
        url = f"{self.base_url}/{name}"
        started = time.time()
        try:
            response = self.http.post(url, json=body, headers=self._headers(), timeout=self.timeout)
        except requests.RequestException as e:
            observe_remote_call(name, time.time() - started, False)
            self.logger.error(f"Remote function {name} unreachable: {e}")
            raise RemoteFunctionError(f"Could not reach {name}. Please try again later.") from e

        latency = time.time() - started
        try:
            payload = response.json()
        except ValueError:
            payload = {}

        if response.status_code >= 400 or (isinstance(payload, dict) and payload.get('success') is False):
            observe_remote_call(name, latency, False)
            reason = payload.get('error') if isinstance(payload, dict) else None
            self.logger.error(f"Remote function {name} failed: status={response.status_code} error={reason}")
            raise RemoteFunctionError(reason or f"{name} failed with status {response.status_code}")

        observe_remote_call(name, latency, True)
        self.logger.info(f"Remote function {name} ok in {latency:.2f}s")
        return payload if isinstance(payload, dict) else {'data': payload}


class StorageClient:
    """Uploads images to object storage buckets"""

    def __init__(self, base_url: Optional[str] = None, service_key: Optional[str] = None,
                 timeout: Optional[float] = None, max_bytes: Optional[int] = None, http=None):
        config = current_app.config
        self.base_url = (base_url or config.get('STORAGE_URL', '')).rstrip('/')
        self.service_key = service_key if service_key is not None else config.get('BACKEND_SERVICE_KEY', '')
        self.timeout = timeout or config.get('REMOTE_TIMEOUT_SECONDS', 30)
        self.max_bytes = max_bytes or config.get('MAX_UPLOAD_BYTES', 5 * 1024 * 1024)
        self.http = http or requests
        self.logger = logging.getLogger(__name__)

    def public_url(self, bucket: str, path: str) -> str:
        return f"{self.base_url}/object/public/{bucket}/{path}"

    def upload(self, bucket: str, filename: str, data: bytes, content_type: str) -> str:
        """Store an image and return its public URL"""
        if bucket not in UPLOAD_BUCKETS:
            raise StorageError(f"Unknown bucket '{bucket}'.")

        check = validate_image_upload(filename, content_type, len(data or b''), self.max_bytes)
        if not check.is_valid:
            raise StorageError(check.error_message)

        path = f"{uuid.uuid4().hex}.{check.sanitized_value}"
        headers = {'Content-Type': content_type}
        if self.service_key:
            headers['Authorization'] = f'Bearer {self.service_key}'

        started = time.time()
        target = f'storage:{bucket}'
        try:
            response = self.http.post(f"{self.base_url}/object/{bucket}/{path}",
                                      data=data, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            observe_remote_call(target, time.time() - started, False)
            self.logger.error(f"Upload to {bucket} failed: {e}")
            raise StorageError("Upload failed. Please try again.") from e

        if response.status_code >= 400:
            observe_remote_call(target, time.time() - started, False)
            self.logger.error(f"Upload to {bucket} rejected: status={response.status_code}")
            raise StorageError("Upload failed. Please try again.")

        observe_remote_call(target, time.time() - started, True)
        self.logger.info(f"Uploaded {filename} to {bucket}/{path}")
        return self.public_url(bucket, path)
