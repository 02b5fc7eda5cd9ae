# demiland/imagekit.py

import logging
from urllib.parse import urlparse
import requests
from flask import current_app

logger = logging.getLogger(__name__)


class ImageKitError(Exception):
    pass


class ImageKitClient:
    """
    Minimal client for the ImageKit media API. Only deletion is needed here;
    uploads happen directly from the browser.
    """

    def __init__(self, private_key, api_url='https://api.imagekit.io/v1', url_endpoint='', timeout=10):
        self.private_key = private_key
        self.api_url = api_url.rstrip('/')
        self.url_endpoint = (url_endpoint or '').rstrip('/')
        self.timeout = timeout

    @classmethod
    def from_config(cls, config):
        return cls(
            private_key=config.get('IMAGEKIT_PRIVATE_KEY'),
            api_url=config.get('IMAGEKIT_API_URL', 'https://api.imagekit.io/v1'),
            url_endpoint=config.get('IMAGEKIT_URL_ENDPOINT', ''),
            timeout=config.get('IMAGEKIT_TIMEOUT', 10),
        )

    @property
    def auth(self):
        # ImageKit uses the private key as the basic-auth username with an empty password.
        return (self.private_key, '')

    def file_path_from_url(self, url):
        if not url:
            return None
        path = urlparse(url).path
        if self.url_endpoint:
            endpoint_path = urlparse(self.url_endpoint).path.rstrip('/')
            if endpoint_path and path.startswith(endpoint_path):
                path = path[len(endpoint_path):]
        # Strip any "tr:..." transformation segment
        segments = [s for s in path.split('/') if s and not s.startswith('tr:')]
        if not segments:
            return None
        return '/' + '/'.join(segments)

    def find_file_id(self, file_path):
        name = file_path.rsplit('/', 1)[-1]
        response = requests.get(
            f"{self.api_url}/files",
            params={'searchQuery': f'name = "{name}"'},
            auth=self.auth,
            timeout=self.timeout,
        )
        if not response.ok:
            raise ImageKitError(f"HTTP {response.status_code}: file lookup failed")
        for entry in response.json():
            if entry.get('filePath') == file_path:
                return entry.get('fileId')
        return None

    def delete_file(self, file_id):
        response = requests.delete(f"{self.api_url}/files/{file_id}", auth=self.auth, timeout=self.timeout)
        if not response.ok:
            raise ImageKitError(f"HTTP {response.status_code}: file delete failed")
        return True

    def delete_image_by_url(self, url):
        """
        Deletes the hosted file behind an image URL.
        Returns False when there is nothing to delete; raises ImageKitError on API failure.
        """
        if not self.private_key:
            raise ImageKitError("ImageKit private key is not configured")
        file_path = self.file_path_from_url(url)
        if not file_path:
            return False
        file_id = self.find_file_id(file_path)
        if not file_id:
            logger.info(f"No ImageKit file found for {file_path}")
            return False
        self.delete_file(file_id)
        logger.info(f"Deleted ImageKit file {file_id} ({file_path})")
        return True


def get_imagekit_client():
    return ImageKitClient.from_config(current_app.config)
