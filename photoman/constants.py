from photoman.model.uid import UID

# When parsing config file:
PROJECT_DIR_TOKEN = '$PROJECT_DIR'

PROJECT_DIR = '.'
CONFIG_DIR = f'{PROJECT_DIR}/config'
DEFAULT_CONFIG_PATH = f'{CONFIG_DIR}/photoman-default.cfg'

INDEX_FILE_SUFFIX = 'db'
ENTRY_INDEX_FILE_NAME = f'photoman.{INDEX_FILE_SUFFIX}'

DEFAULT_CACHE_DIR = 'cache'
PARTIAL_DOWNLOAD_SUFFIX = '.part'

# ---- Handles: ----

ROOT_UID = UID(0)
FIRST_CHILD_UID = UID(1)

CHILDREN_LIST_SEPARATOR = ','

# ---- Google Drive: ----

GoogID = str

ROOT_GOOG_ID: GoogID = 'root'
ROOT_NAME = 'root'

# IMPORTANT: If modifying these scopes, delete the token file.
GDRIVE_AUTH_SCOPES = ['https://www.googleapis.com/auth/drive']

MIME_TYPE_FOLDER = 'application/vnd.google-apps.folder'
MIME_TYPE_NIKON_NEF = 'image/x-nikon-nef'

GDRIVE_LIST_FIELDS = 'nextPageToken, incompleteSearch, files(id, name, mimeType)'
GDRIVE_DEFAULT_PAGE_SIZE = 1000

# ---- Photos: ----

PREVIEW_EXTENSION = 'jpg'

DEFAULT_PREVIEW_EXTRACTOR_EXE = 'exiv2'
DEFAULT_RAW_MIME_TYPES = [MIME_TYPE_NIKON_NEF]

# exiv2 "-ep3": extract preview image #3 (the full-size embedded JPEG in Nikon NEFs)
PREVIEW_EXTRACTOR_PREVIEW_NUM = 3
