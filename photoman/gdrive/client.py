import logging
import os.path
import pickle
import socket
from typing import List, Optional

import humanfriendly
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseDownload

from photoman.constants import GDRIVE_AUTH_SCOPES, GDRIVE_DEFAULT_PAGE_SIZE, GDRIVE_LIST_FIELDS, GoogID
from photoman.error import CacheFileError, GDriveError
from photoman.gdrive.gdrive_source import GDriveSource
from photoman.model.gdrive_meta import GDriveMeta
from photoman.util import file_util
from photoman.util.stopwatch_sec import Stopwatch

logger = logging.getLogger(__name__)

# Errors which mean "we could not talk to Google". Everything else propagates as-is
_TRANSPORT_ERRORS = (HttpError, GoogleAuthError, socket.timeout, ConnectionError)


def _load_google_client_service(config):
    logger.debug('Trying to authenticate against GDrive API...')
    creds = None
    # The token file stores the user's access and refresh tokens, and is
    # created automatically when the authorization flow completes for the first
    # time.
    token_file_path = file_util.get_resource_path(config.get_config('auth.token_file_path'))
    if os.path.exists(token_file_path):
        with open(token_file_path, 'rb') as token:
            creds = pickle.load(token)
    # If there are no (valid) credentials available, let the user log in.
    if not creds or not creds.valid:
        try:
            if creds and creds.expired and creds.refresh_token:
                creds.refresh(Request())
            else:
                creds_path = file_util.get_resource_path(config.get_config('auth.credentials_file_path'))
                if not os.path.exists(creds_path):
                    raise RuntimeError(f'Could not find credentials file at the specified path ({creds_path})! This file is required to run.')
                flow = InstalledAppFlow.from_client_secrets_file(creds_path, GDRIVE_AUTH_SCOPES)
                creds = flow.run_local_server(port=0)
        except _TRANSPORT_ERRORS as err:
            raise GDriveError(f'Authentication failed: {repr(err)}') from err
        # Save the credentials for the next run
        with open(token_file_path, 'wb') as token:
            pickle.dump(creds, token)

    service = build('drive', 'v3', credentials=creds, cache_discovery=False)
    logger.debug('Authentication done!')
    return service


def _execute(request_func, description: str):
    """Runs request_func once. No retries: a failure is reported to the caller as a GDriveError"""
    try:
        return request_func()
    except _TRANSPORT_ERRORS as err:
        logger.error(f'Request failed ({description}): {repr(err)}')
        raise GDriveError(f'Google Drive request failed ({description}): {err}') from err


# CLASS GDriveClient
# ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼

class GDriveClient(GDriveSource):
    def __init__(self, config, service=None):
        self.config = config
        self.page_size: int = config.get_config('gdrive.page_size', GDRIVE_DEFAULT_PAGE_SIZE, is_required=False)
        if service is None:
            service = _load_google_client_service(config)
        self.service = service

    def shutdown(self):
        if self.service:
            logger.debug(f'Closing GDriveClient')
            self.service.close()
            self.service = None

    # API CALLS
    # ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼

    def get_all_children_for_parent(self, parent_goog_id: GoogID) -> List[GDriveMeta]:
        """Gets all non-trashed nodes (files, folders, etc) directly under the given parent, across all pages"""
        query = f"'{parent_goog_id}' in parents and trashed = false"
        # Google Drive only; not app data or Google Photos:
        spaces = 'drive'

        page_token: Optional[str] = None
        page_count = 0
        meta_list: List[GDriveMeta] = []
        sw = Stopwatch()

        while True:
            def request():
                logger.debug(f'Sending request for children of "{parent_goog_id}", page {page_count}...')
                return self.service.files().list(q=query, fields=GDRIVE_LIST_FIELDS, spaces=spaces, pageSize=self.page_size,
                                                 pageToken=page_token).execute()

            results: dict = _execute(request, f'list children of "{parent_goog_id}"')
            page_count += 1

            if results.get('incompleteSearch', False):
                # Not clear when this would happen, but fail fast if so
                raise GDriveError(f'Results are incomplete! (page {page_count})')

            items: list = results.get('files', [])
            logger.debug(f'Received {len(items)} items')
            for item in items:
                meta_list.append(GDriveMeta(goog_id=item['id'], name=item.get('name', ''), mime_type=item.get('mimeType', '')))

            page_token = results.get('nextPageToken')
            if not page_token:
                break

        logger.debug(f'{sw} Query for children of "{parent_goog_id}" returned {len(meta_list)} items in {page_count} pages')
        return meta_list

    def download_file(self, goog_id: GoogID, dest_path: str) -> int:
        """Download a single file based on Google ID and destination path. Streams straight to disk"""
        logger.debug(f'Downloading GDrive goog_id="{goog_id}" to "{dest_path}"')
        sw = Stopwatch()

        try:
            fh = open(dest_path, 'wb')
        except OSError as err:
            raise CacheFileError(dest_path) from err

        with fh:
            def download():
                request = self.service.files().get_media(fileId=goog_id)
                downloader = MediaIoBaseDownload(fh, request)
                done = False
                while done is False:
                    status, done = downloader.next_chunk()
                    if status:
                        logger.debug(f'Download {int(status.progress() * 100)}%')

            try:
                _execute(download, f'download "{goog_id}"')
            except OSError as err:
                raise CacheFileError(dest_path, f'Could not write cache file "{dest_path}": {err}') from err

        size_bytes = os.path.getsize(dest_path)
        logger.info(f'{sw} GDrive download successful: {humanfriendly.format_size(size_bytes)} -> "{dest_path}"')
        return size_bytes
