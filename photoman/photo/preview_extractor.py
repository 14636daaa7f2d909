import logging
import os
import subprocess
from typing import List

from photoman.constants import DEFAULT_PREVIEW_EXTRACTOR_EXE, PREVIEW_EXTRACTOR_PREVIEW_NUM
from photoman.error import PreviewExtractionError
from photoman.util.stopwatch_sec import Stopwatch

logger = logging.getLogger(__name__)


class PreviewExtractor:
    """
    ◤━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━◥
        CLASS PreviewExtractor
    ◣━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━◢

    Pulls the JPEG preview which camera RAW containers (e.g. Nikon NEF) carry inside them, using exiv2, instead of
    converting the RAW image ourselves. exiv2 names its output after the input: "{dir}/{stem}-preview{N}.jpg".

    This is a blocking call with no timeout.
    """
    def __init__(self, exe_path: str = DEFAULT_PREVIEW_EXTRACTOR_EXE, preview_num: int = PREVIEW_EXTRACTOR_PREVIEW_NUM):
        self.exe_path: str = exe_path
        self.preview_num: int = preview_num

    def build_cmd(self, raw_path: str, output_dir: str) -> List[str]:
        return [self.exe_path, f'-ep{self.preview_num}', '-l', output_dir, raw_path]

    def get_preview_path(self, raw_path: str, output_dir: str) -> str:
        stem = os.path.splitext(os.path.basename(raw_path))[0]
        return os.path.join(output_dir, f'{stem}-preview{self.preview_num}.jpg')

    def extract(self, raw_path: str, output_dir: str) -> str:
        """Returns the path of the extracted preview. Raises PreviewExtractionError if exiv2 cannot be run, exits non-zero,
        or does not produce the file"""
        cmd = self.build_cmd(raw_path, output_dir)
        logger.debug(f'Executing: {cmd}')
        sw = Stopwatch()
        try:
            subprocess.run(cmd, check=True, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
        except FileNotFoundError as err:
            raise PreviewExtractionError(raw_path, f'Could not execute preview extractor "{self.exe_path}": {err}') from err
        except subprocess.CalledProcessError as err:
            stderr = err.stderr.decode(errors='replace').strip() if err.stderr else ''
            raise PreviewExtractionError(raw_path, f'Preview extractor exited with code {err.returncode} for "{raw_path}": {stderr}') from err

        preview_path = self.get_preview_path(raw_path, output_dir)
        if not os.path.isfile(preview_path):
            raise PreviewExtractionError(raw_path, f'Preview extractor did not produce expected file: "{preview_path}"')

        logger.debug(f'{sw} Extracted preview "{preview_path}" from "{raw_path}"')
        return preview_path
